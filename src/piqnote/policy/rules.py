"""
Fixed rule sets shared by the formatter, the generators and the validator.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional


ALLOWED_TYPES = frozenset(
    {"feat", "fix", "chore", "docs", "refactor", "perf", "test", "build", "ci", "style", "revert"}
)
SCOPED_TYPES = frozenset({"feat", "fix"})
VAGUE_TERMS = ("update", "misc", "stuff", "various", "changes")
NON_IMPERATIVE_WORDS = frozenset(
    {"updates", "updated", "updating", "fixes", "fixed", "fixing", "adds", "added", "adding", "please"}
)

ARTIFACT_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (r"node_modules", r"dist/", r"build/", r"coverage/", r"\.turbo/")
)
FILE_MENTION = re.compile(
    r"\b\w+\.(ts|js|jsx|tsx|py|json|md|css|scss|yml|yaml|toml|lock|log|env)\b", re.IGNORECASE
)
PATH_MENTION = re.compile(r"[\\/]")

TRAILING_PUNCTUATION = ".!?;:,"

_SUBJECT = re.compile(
    r"^(?P<type>[a-z]+)(?:\((?P<scope>[^)]+)\))?(?P<breaking>!)?:(?:\s+(?P<desc>.*))?$",
    re.IGNORECASE,
)
# also accepts a missing space after the colon
_LENIENT_SUBJECT = re.compile(
    r"^(?P<type>[a-z]+)(?:\((?P<scope>[^)]+)\))?(?P<breaking>!)?:\s*(?P<desc>.*)$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ParsedSubject:
    type: str
    scope: Optional[str]
    description: str
    breaking: bool = False

    def format(self) -> str:
        scope = f"({self.scope})" if self.scope else ""
        bang = "!" if self.breaking else ""
        return f"{self.type}{scope}{bang}: {self.description}"


def parse_subject(subject: str, lenient: bool = False) -> Optional[ParsedSubject]:
    """Parse ``type[(scope)][!]: description``; ``None`` if the shape differs.

    The description must be separated from the colon by whitespace unless
    ``lenient`` is set.
    """
    pattern = _LENIENT_SUBJECT if lenient else _SUBJECT
    match = pattern.match(subject.strip())
    if not match:
        return None
    return ParsedSubject(
        type=match.group("type").lower(),
        scope=match.group("scope"),
        description=(match.group("desc") or "").strip(),
        breaking=bool(match.group("breaking")),
    )


def strip_trailing_punctuation(text: str) -> str:
    return text.rstrip(TRAILING_PUNCTUATION)


def contains_artifacts(text: str) -> bool:
    return any(pattern.search(text) for pattern in ARTIFACT_PATTERNS)


def contains_files(text: str) -> bool:
    return bool(FILE_MENTION.search(text) or PATH_MENTION.search(text))


def vague_terms_in(text: str) -> List[str]:
    """Return the vague terms occurring anywhere in ``text``."""
    lower = text.lower()
    return [term for term in VAGUE_TERMS if term in lower]


def is_imperative(description: str) -> bool:
    """Heuristic: the first word is not a conjugated verb, "please" or a vague verb."""
    words = description.strip().split()
    if not words:
        return False
    first = words[0].lower()
    return first not in NON_IMPERATIVE_WORDS and first not in VAGUE_TERMS
