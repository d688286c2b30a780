"""
Heuristics for summarising a unified diff.

The analyzer extracts the touched paths, guesses a scope from them,
ranks the most frequent keywords of the changed lines and keeps a few
raw lines as bullet candidates. It is intentionally simple and
deterministic so that every downstream stage can be unit tested
without a language model.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple


FRONTEND_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".css", ".scss", ".sass", ".vue")
# Narrower than FRONTEND_EXTENSIONS: plain .ts/.js are not necessarily rendered UI.
RENDERING_EXTENSIONS = (".tsx", ".jsx", ".css", ".scss", ".sass", ".vue")
API_INDICATORS = ("api", "server", "backend", "routes", "controllers")
CONFIG_INDICATORS = ("config", "settings", "env", "build", "webpack", "vite")

TOPIC_LIMIT = 4
BULLET_CANDIDATES = 5
BULLET_WIDTH = 80

_FILE_MARKERS = ("+++ b/", "--- a/")


@dataclass(frozen=True)
class DiffInsights:
    """Structured summary of a diff.

    Attributes
    ----------
    scope : Optional[str]
        Inferred category of the change (``ui``, ``front``, ``api`` or
        ``build``), ``None`` when nothing matched.
    topics : Tuple[str, ...]
        Ranked keywords, most frequent first.
    bullet_points : Tuple[str, ...]
        The first changed lines, each cut to :data:`BULLET_WIDTH`.
    summary : str
        A single human readable sentence.
    is_frontend : bool
        True if any touched file renders UI.
    files_touched : int
        Number of distinct paths named in the file headers.
    file_kinds : Tuple[str, ...]
        Distinct file extensions in first-seen order.
    """

    scope: Optional[str]
    topics: Tuple[str, ...]
    bullet_points: Tuple[str, ...]
    summary: str
    is_frontend: bool
    files_touched: int
    file_kinds: Tuple[str, ...]


def extract_file_paths(diff: str) -> List[str]:
    """Return the distinct paths named by ``+++ b/`` and ``--- a/`` headers."""
    paths: List[str] = []
    for line in diff.splitlines():
        for marker in _FILE_MARKERS:
            if line.startswith(marker):
                path = line[len(marker):].strip()
                if path and path not in paths:
                    paths.append(path)
                break
    return paths


def detect_scope(paths: Sequence[str]) -> Optional[str]:
    """Guess a scope from the touched paths; the first matching path wins.

    Per path: UI components, then API code (``server/api/x.ts`` is
    ``api`` even though ``.ts`` is a frontend extension), then other
    frontend files, then build configuration.
    """
    for path in paths:
        lower = path.lower()
        frontend = lower.endswith(FRONTEND_EXTENSIONS)
        if frontend and ("component" in lower or "ui" in lower):
            return "ui"
        if any(keyword in lower for keyword in API_INDICATORS):
            return "api"
        if frontend:
            return "front"
        if any(keyword in lower for keyword in CONFIG_INDICATORS):
            return "build"
    return None


def extract_changed_lines(diff: str) -> List[str]:
    """Return added and removed lines without their marker or file headers."""
    lines: List[str] = []
    for line in diff.splitlines():
        if not line.startswith(("+", "-")):
            continue
        if line.startswith(("+++", "---")):
            continue
        content = line[1:].strip()
        if content:
            lines.append(content)
    return lines


def pick_top_topics(lines: Sequence[str], limit: int = 3) -> List[str]:
    """Rank keywords of ``lines`` by frequency.

    Words are lowercased and stripped of anything but letters, digits
    and underscores; only words longer than 3 and shorter than 30
    characters count. Ties keep the order in which the words were
    first encountered.
    """
    counts: Dict[str, int] = {}
    for line in lines:
        cleaned = re.sub(r"[^a-z0-9_]", " ", line.lower())
        for word in cleaned.split():
            if 3 < len(word) < 30:
                counts[word] = counts.get(word, 0) + 1
    # dicts keep insertion order and sorted() is stable
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [word for word, _ in ranked[:limit]]


def build_summary(topics: Sequence[str], scope: Optional[str] = None) -> str:
    topic_text = ", ".join(topics) if topics else "changes"
    if scope:
        return f"{scope} updates: {topic_text}"
    return f"Updates around {topic_text}"


def _extension(path: str) -> str:
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1]


def analyze_diff(diff: str) -> DiffInsights:
    """Turn unified diff text into :class:`DiffInsights`.

    Never raises: an empty or unrecognised diff simply yields empty
    fields.
    """
    paths = extract_file_paths(diff or "")
    scope = detect_scope(paths)
    lines = extract_changed_lines(diff or "")
    topics = pick_top_topics(lines, TOPIC_LIMIT)
    bullet_points = tuple(line[:BULLET_WIDTH] for line in lines[:BULLET_CANDIDATES])

    kinds: List[str] = []
    for path in paths:
        ext = _extension(path)
        if ext and ext not in kinds:
            kinds.append(ext)

    return DiffInsights(
        scope=scope,
        topics=tuple(topics),
        bullet_points=bullet_points,
        summary=build_summary(topics, scope),
        is_frontend=any(path.lower().endswith(RENDERING_EXTENSIONS) for path in paths),
        files_touched=len(paths),
        file_kinds=tuple(kinds),
    )
