"""
Selection of the commit message generator.

The provider set is closed: ``github`` and ``openai`` select a
:class:`RemoteGenerator`, ``local`` the :class:`LocalGenerator` and
``mock`` (or anything unknown) the :class:`MockGenerator`. The offline
switch always wins and selects the mock generator.

Environment lookups go through an injected mapping so that credential
resolution can be tested with a fake environment.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Mapping, Optional, Tuple

from piqnote.config.loader import PiqnoteConfig
from piqnote.llm.local_provider import LocalGenerator
from piqnote.llm.mock_provider import MockGenerator
from piqnote.llm.provider import Generator
from piqnote.llm.remote_provider import ChatCompletionClient, RemoteGenerator


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


ENV_REFERENCE_PREFIX = "env:"

GITHUB_MODELS_ENDPOINT = "https://models.inference.ai.azure.com/chat/completions"
OPENAI_ENDPOINT = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-4o-mini"

# Tried in order when neither an explicit nor a configured key is set.
API_KEY_ENV_VARS: Dict[str, Tuple[str, ...]] = {
    "github": ("GITHUB_TOKEN", "GH_TOKEN"),
    "openai": ("OPENAI_API_KEY",),
}


def dereference_key(value: Optional[str], env: Mapping[str, str]) -> Optional[str]:
    """Resolve an ``env:NAME`` reference; other values are returned as is."""
    if not value:
        return None
    if value.startswith(ENV_REFERENCE_PREFIX):
        return env.get(value[len(ENV_REFERENCE_PREFIX):].strip()) or None
    return value


def resolve_api_key(
    provider: str,
    explicit: Optional[str] = None,
    configured: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """Return the first non-empty credential for ``provider``.

    Order: ``explicit``, then ``configured`` (which may be an
    ``env:NAME`` reference), then the provider's environment variables
    from :data:`API_KEY_ENV_VARS`.
    """
    env = os.environ if env is None else env
    for candidate in (explicit, configured):
        key = dereference_key(candidate, env)
        if key:
            return key
    for name in API_KEY_ENV_VARS.get(provider, ()):
        if env.get(name):
            return env[name]
    return None


def _remote_endpoint(provider: str, config: PiqnoteConfig, env: Mapping[str, str]) -> str:
    if provider == "github":
        return config.ai.endpoint or GITHUB_MODELS_ENDPOINT
    return config.ai.endpoint or env.get("OPENAI_BASE_URL") or OPENAI_ENDPOINT


def _remote_generator(
    provider: str,
    config: PiqnoteConfig,
    api_key: Optional[str],
    env: Mapping[str, str],
) -> RemoteGenerator:
    key = resolve_api_key(provider, api_key, config.ai.api_key, env)
    client = None
    if key:
        client = ChatCompletionClient(
            endpoint=_remote_endpoint(provider, config, env),
            api_key=key,
            model=config.ai.model or env.get("OPENAI_MODEL") or DEFAULT_MODEL,
            temperature=config.ai.temperature,
            max_tokens=config.ai.max_tokens,
            request_timeout=config.ai.request_timeout,
        )
    return RemoteGenerator(client, name=provider, fallback=LocalGenerator(), warn_on_failure=True)


def select_generator(
    config: PiqnoteConfig,
    offline: Optional[bool] = None,
    api_key: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Generator:
    """Pick the generator for this invocation.

    Parameters
    ----------
    config : PiqnoteConfig
        Loaded configuration.
    offline : bool, optional
        Explicit offline switch, combined with ``config.offline``.
    api_key : str, optional
        Explicit credential overriding the configured one.
    env : Mapping[str, str], optional
        Environment used for credential lookup; ``os.environ`` by default.
    """
    env = os.environ if env is None else env
    if offline or config.offline:
        logger.debug("Offline mode: using the mock generator")
        return MockGenerator()

    provider = config.ai.provider
    if provider in ("github", "openai"):
        return _remote_generator(provider, config, api_key, env)
    if provider == "local":
        return LocalGenerator()
    return MockGenerator()
