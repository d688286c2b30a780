"""
Validation of a commit message against the commit-style policy.

:func:`validate` runs every check and collects one reason per failed
check instead of stopping at the first problem, so the operator sees
the complete list. The function is pure: identical input always gives
an identical :class:`ValidationResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from piqnote.config.loader import CommitConfig
from piqnote.policy.rules import (
    ALLOWED_TYPES,
    SCOPED_TYPES,
    TRAILING_PUNCTUATION,
    contains_artifacts,
    contains_files,
    is_imperative,
    parse_subject,
    vague_terms_in,
)


@dataclass
class ValidationResult:
    """Outcome of :func:`validate`."""

    valid: bool
    reasons: List[str] = field(default_factory=list)


def _subject_reasons(subject: str, max_length: int) -> List[str]:
    reasons: List[str] = []
    parsed = parse_subject(subject)
    if parsed is None:
        reasons.append("Subject must follow Conventional Commits (type(scope): description)")
    else:
        if parsed.type not in ALLOWED_TYPES:
            reasons.append(f"Subject uses an unsupported type '{parsed.type}'")
        if parsed.type in SCOPED_TYPES and not parsed.scope:
            reasons.append(f"Subject of type '{parsed.type}' must include a scope")
        if not parsed.description:
            reasons.append("Subject description required")
        elif not is_imperative(parsed.description):
            reasons.append("Subject should use imperative mood")
        if parsed.description.endswith(tuple(TRAILING_PUNCTUATION)):
            reasons.append("Subject must not end with punctuation")

    if len(subject) > max_length:
        reasons.append(f"Subject exceeds {max_length} characters")
    if contains_artifacts(subject) or contains_files(subject):
        reasons.append("Subject references artifacts or file paths")
    vague = vague_terms_in(subject)
    if vague:
        reasons.append(f"Subject contains vague terms ({', '.join(vague)})")
    return reasons


def _bullet_reasons(bullets: Sequence[str], max_bullets: int) -> List[str]:
    reasons: List[str] = []
    if len(bullets) > max_bullets:
        reasons.append(f"Too many bullets ({len(bullets)}, max {max_bullets})")
    for index, bullet in enumerate(bullets, start=1):
        if contains_artifacts(bullet) or contains_files(bullet):
            reasons.append(f"Bullet {index} references artifacts or file paths")
        vague = vague_terms_in(bullet)
        if vague:
            reasons.append(f"Bullet {index} contains vague terms ({', '.join(vague)})")
    return reasons


def validate(subject: str, bullets: Sequence[str], config: Optional[CommitConfig] = None) -> ValidationResult:
    """Check ``subject`` and ``bullets`` against the policy.

    Parameters
    ----------
    subject : str
        The commit subject line (first line of the message).
    bullets : Sequence[str]
        Bullet texts without their prefix.
    config : CommitConfig, optional
        Policy limits; defaults are used when omitted.

    Returns
    -------
    ValidationResult
        ``valid`` is True exactly when ``reasons`` is empty.
    """
    config = config or CommitConfig()
    reasons = _subject_reasons(subject, config.max_subject_length)
    reasons.extend(_bullet_reasons(bullets, config.max_bullets))
    return ValidationResult(valid=not reasons, reasons=reasons)
