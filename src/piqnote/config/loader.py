"""
Configuration loader for piqnote.

The tool reads an optional JSON file named ``.piqnoterc`` located in
the repository root. Settings may be given either in nested sections::

    {"ai": {"provider": "github", "model": "gpt-4o-mini"},
     "commit": {"style": "conventional", "maxBullets": 2},
     "scope": "core"}

or as flat keys (``style``, ``maxSubjectLength``, ``provider``,
``apiKey`` ...). A missing file yields the defaults. A malformed file
or a value of the wrong type is logged and replaced by its default, so
loading never aborts the commit flow. Only :func:`save_config` raises
:class:`ConfigError`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


logger = logging.getLogger(__name__)
# Attach a null handler to avoid "No handler" warnings in environments
# where logging is not configured. The CLI configures the root logger.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


CONFIG_FILENAME = ".piqnoterc"

STYLES = ("conventional", "plain")
PROVIDERS = ("github", "openai", "local", "mock")


class ConfigError(Exception):
    """Raised when the configuration file cannot be written."""

    pass


@dataclass
class AiConfig:
    """Settings of the text-generation backend."""

    provider: str = "mock"
    model: Optional[str] = None
    api_key: Optional[str] = None
    endpoint: Optional[str] = None
    temperature: float = 0.4
    max_tokens: Optional[int] = None
    request_timeout: float = 60.0


@dataclass
class CommitConfig:
    """Commit-style policy settings."""

    style: str = "conventional"
    max_subject_length: int = 72
    max_bullets: int = 2
    bullet_prefix: str = "-"
    scope: Optional[str] = None


@dataclass
class PiqnoteConfig:
    """Complete configuration of one invocation."""

    ai: AiConfig = field(default_factory=AiConfig)
    commit: CommitConfig = field(default_factory=CommitConfig)
    scope: Optional[str] = None
    language: str = "en"
    offline: bool = False
    base_branch: str = "main"

    @property
    def scope_fallback(self) -> Optional[str]:
        return self.scope or self.commit.scope


def default_config() -> PiqnoteConfig:
    """Return a fresh configuration holding only defaults."""
    return PiqnoteConfig()


# key in file -> (attribute, accepted types)
_AI_KEYS: Dict[str, Tuple[str, Tuple[type, ...]]] = {
    "provider": ("provider", (str,)),
    "model": ("model", (str,)),
    "apiKey": ("api_key", (str,)),
    "endpoint": ("endpoint", (str,)),
    "temperature": ("temperature", (int, float)),
    "maxTokens": ("max_tokens", (int,)),
    "requestTimeout": ("request_timeout", (int, float)),
}
_COMMIT_KEYS: Dict[str, Tuple[str, Tuple[type, ...]]] = {
    "style": ("style", (str,)),
    "maxSubjectLength": ("max_subject_length", (int,)),
    "maxBullets": ("max_bullets", (int,)),
    "bulletPrefix": ("bullet_prefix", (str,)),
    "scope": ("scope", (str,)),
}
_TOP_KEYS: Dict[str, Tuple[str, Tuple[type, ...]]] = {
    "scope": ("scope", (str,)),
    "language": ("language", (str,)),
    "offline": ("offline", (bool,)),
    "baseBranch": ("base_branch", (str,)),
}
# flat aliases of nested keys
_FLAT_AI_ALIASES = {"aiProvider": "provider"}


def _pick(section: Dict[str, Any], keys: Dict[str, Tuple[str, Tuple[type, ...]]], where: str) -> Dict[str, Any]:
    """Collect the recognised, well-typed values of ``section``."""
    values: Dict[str, Any] = {}
    for key, (attr, types) in keys.items():
        if key not in section or section[key] is None:
            continue
        value = section[key]
        # bool is an int subclass; only accept it where bool is expected
        if isinstance(value, bool) and bool not in types:
            ok = False
        else:
            ok = isinstance(value, types)
        if not ok:
            logger.warning("Ignoring %s.%s: expected %s, got %r", where, key, types[0].__name__, value)
            continue
        values[attr] = value
    return values


def _validated_ai(values: Dict[str, Any]) -> Dict[str, Any]:
    if "provider" in values and values["provider"] not in PROVIDERS:
        logger.warning("Unknown provider %r; the mock provider will be used", values["provider"])
    if "max_tokens" in values and values["max_tokens"] <= 0:
        logger.warning("Ignoring non-positive maxTokens %r", values.pop("max_tokens"))
    return values


def _validated_commit(values: Dict[str, Any]) -> Dict[str, Any]:
    if "style" in values and values["style"] not in STYLES:
        logger.warning("Unknown commit style %r; using 'conventional'", values.pop("style"))
    for key in ("max_subject_length", "max_bullets"):
        # subjects are cut to max - 3 characters plus "..."
        minimum = 10 if key == "max_subject_length" else 0
        if key in values and values[key] < minimum:
            logger.warning("Ignoring out-of-range %s %r", key, values.pop(key))
    return values


def parse_config(data: Dict[str, Any]) -> PiqnoteConfig:
    """Build a :class:`PiqnoteConfig` from decoded JSON, ignoring bad values."""
    ai_section = data.get("ai") if isinstance(data.get("ai"), dict) else {}
    commit_section = data.get("commit") if isinstance(data.get("commit"), dict) else {}

    flat_ai = {_FLAT_AI_ALIASES.get(k, k): v for k, v in data.items() if _FLAT_AI_ALIASES.get(k, k) in _AI_KEYS}
    ai_values = _pick(flat_ai, _AI_KEYS, "config")
    ai_values.update(_pick(ai_section, _AI_KEYS, "ai"))

    commit_values = _pick({k: v for k, v in data.items() if k != "scope"}, _COMMIT_KEYS, "config")
    commit_values.update(_pick(commit_section, _COMMIT_KEYS, "commit"))

    top_values = _pick(data, _TOP_KEYS, "config")

    config = default_config()
    return replace(
        config,
        ai=replace(config.ai, **_validated_ai(ai_values)),
        commit=replace(config.commit, **_validated_commit(commit_values)),
        **top_values,
    )


def load_config(repo_root: Optional[Path] = None) -> PiqnoteConfig:
    """Load ``.piqnoterc`` from ``repo_root`` (the current directory by default).

    Returns
    -------
    PiqnoteConfig
        The configuration; defaults for everything missing or invalid.
    """
    root = repo_root or Path.cwd()
    config_path = root / CONFIG_FILENAME

    if not config_path.exists():
        logger.debug("No configuration file at %s; using defaults", config_path)
        return default_config()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Failed to read or parse %s, using defaults: %s", config_path.name, exc)
        return default_config()

    if not isinstance(data, dict):
        logger.warning("%s must contain a JSON object; using defaults", config_path.name)
        return default_config()

    config = parse_config(data)
    logger.debug("Loaded configuration from: %s", config_path)
    return config


def save_config(repo_root: Path, updates: Dict[str, Any]) -> Path:
    """Merge ``updates`` into ``.piqnoterc`` and write it back.

    Nested sections (``ai``, ``commit``) are merged key by key. An
    unreadable existing file is replaced.

    Raises
    ------
    ConfigError
        If the file cannot be written.
    """
    config_path = repo_root / CONFIG_FILENAME
    current: Dict[str, Any] = {}
    if config_path.exists():
        try:
            loaded = json.loads(config_path.read_text(encoding="utf-8"))
            if isinstance(loaded, dict):
                current = loaded
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Replacing unreadable %s: %s", config_path.name, exc)

    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(current.get(key), dict):
            current[key] = {**current[key], **value}
        else:
            current[key] = value

    try:
        config_path.write_text(json.dumps(current, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.error("Failed to write configuration file: %s", exc)
        raise ConfigError(f"Could not write {config_path}: {exc}") from exc
    return config_path
