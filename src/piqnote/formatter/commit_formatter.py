"""
Normalisation and formatting of commit messages.

:func:`normalize_subject` coerces a generated subject into the
``type(scope): description`` shape. :func:`format_commit` renders the
final message text: subject within the length limit followed by the
prefixed bullet lines.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import List, Optional, Sequence

from piqnote.config.loader import CommitConfig
from piqnote.policy.rules import ALLOWED_TYPES, SCOPED_TYPES, parse_subject, strip_trailing_punctuation


ELLIPSIS = "..."

_KNOWN_TYPE = re.compile(
    r"^(%s)(\([^)]+\))?!?:" % "|".join(sorted(ALLOWED_TYPES))
)
_UNSCOPED_FEAT_FIX = re.compile(r"^(%s)(!?):\s*" % "|".join(sorted(SCOPED_TYPES)))


def truncate(text: str, max_length: int) -> str:
    """Cut ``text`` to ``max_length`` characters, ending with ``...`` when cut."""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ELLIPSIS)].rstrip() + ELLIPSIS


def normalize_subject(subject: str, scope_fallback: str) -> str:
    """Coerce ``subject`` into Conventional Commits shape.

    Trailing punctuation is removed. A conventional subject keeps its
    type, scope and breaking marker; feat/fix without a scope receive
    ``scope_fallback``. Anything else becomes a ``chore`` in
    ``scope_fallback``.
    """
    trimmed = strip_trailing_punctuation(subject.strip())
    parsed = parse_subject(trimmed, lenient=True)
    if parsed is None:
        return f"chore({scope_fallback}): {trimmed}"

    scope = parsed.scope
    if parsed.type in SCOPED_TYPES and not scope:
        scope = scope_fallback
    return replace(parsed, scope=scope).format()


def clean_bullets(bullets: Sequence[str], limit: int) -> List[str]:
    cleaned = [bullet.strip() for bullet in bullets]
    return [bullet for bullet in cleaned if bullet][: max(0, limit)]


def format_commit(
    subject: str,
    bullets: Sequence[str],
    scope: Optional[str] = None,
    config: Optional[CommitConfig] = None,
) -> str:
    """Render the final commit message text.

    Parameters
    ----------
    subject : str
        The (normalised) subject.
    bullets : Sequence[str]
        Bullet texts without prefix.
    scope : str, optional
        Scope to use when a type prefix or a feat/fix scope is missing.
    config : CommitConfig, optional
        Style, limits and bullet prefix.

    Returns
    -------
    str
        Subject and bullet lines joined with newlines. The subject never
        exceeds ``config.max_subject_length``.
    """
    config = config or CommitConfig()
    subject = subject.strip()

    if config.style == "conventional":
        if not _KNOWN_TYPE.match(subject):
            subject = f"chore({scope}): {subject}" if scope else f"chore: {subject}"
        elif scope:
            subject = _UNSCOPED_FEAT_FIX.sub(
                lambda match: f"{match.group(1)}({scope}){match.group(2)}: ", subject, count=1
            )

    lines = [truncate(subject, config.max_subject_length)]
    lines.extend(f"{config.bullet_prefix} {bullet}" for bullet in clean_bullets(bullets, config.max_bullets))
    return "\n".join(lines)
