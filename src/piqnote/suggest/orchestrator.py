"""
Suggestion orchestration: generate, normalise, format and validate.

:func:`build_suggestions` runs up to :data:`MAX_ATTEMPTS` generation
rounds. Each round asks the generator for candidates and keeps every
candidate that passes the policy. When no round produces a valid
candidate, :class:`NoValidMessageError` is raised and the caller
switches to manual entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from piqnote.analyzer.diff_analyzer import DiffInsights
from piqnote.config.loader import PiqnoteConfig
from piqnote.formatter.commit_formatter import format_commit, normalize_subject
from piqnote.llm.factory import select_generator
from piqnote.llm.provider import GenerationRequest, Generator, generate_candidates
from piqnote.policy.rules import VAGUE_TERMS, contains_artifacts, contains_files
from piqnote.policy.validator import ValidationResult, validate


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


MAX_ATTEMPTS = 3
CANDIDATE_COUNT = 3
DEFAULT_SCOPE = "core"

RetryCallback = Callable[[int, int, str], None]


class NoValidMessageError(Exception):
    """Raised when every generation round failed validation."""

    pass


@dataclass
class Candidate:
    """A normalised candidate with its validation outcome."""

    subject: str
    bullets: List[str]
    message: str
    validation: ValidationResult


@dataclass
class Suggestions:
    """Valid messages of one round together with their raw parts."""

    messages: List[str] = field(default_factory=list)
    raw_candidates: List[Candidate] = field(default_factory=list)


def resolve_scope(config: PiqnoteConfig, insights: DiffInsights) -> str:
    return config.scope_fallback or insights.scope or DEFAULT_SCOPE


def sanitize_message_bullets(bullets: Sequence[str], limit: int) -> List[str]:
    """Keep bullets that add meaning: no artifacts, files, paths or a lone vague word."""
    kept = []
    for bullet in (b.strip() for b in bullets):
        if not bullet or contains_artifacts(bullet) or contains_files(bullet):
            continue
        if bullet.lower() in VAGUE_TERMS:
            continue
        kept.append(bullet)
    return kept[: max(1, limit)]


def ensure_bullets(candidate: Sequence[str], fallback: Sequence[str], limit: int) -> List[str]:
    """Use the candidate's bullets, or the diff's bullet candidates when none survive."""
    clean = sanitize_message_bullets(candidate, limit)
    if clean:
        return clean
    return sanitize_message_bullets(fallback, limit)


def evaluate(
    subject: str,
    bullets: Sequence[str],
    config: PiqnoteConfig,
    insights: DiffInsights,
) -> Candidate:
    """Normalise, format and validate one raw candidate."""
    scope = resolve_scope(config, insights)
    limit = config.commit.max_bullets
    normalized = normalize_subject(subject, scope)
    kept = ensure_bullets(bullets, insights.bullet_points, limit)
    message = format_commit(normalized, kept, config.scope_fallback or insights.scope, config.commit)
    validation = validate(message.split("\n", 1)[0], kept, config.commit)
    return Candidate(subject=normalized, bullets=kept, message=message, validation=validation)


def build_suggestions(
    config: PiqnoteConfig,
    insights: DiffInsights,
    generator: Optional[Generator] = None,
    offline: bool = False,
    max_attempts: int = MAX_ATTEMPTS,
    candidate_count: int = CANDIDATE_COUNT,
    on_retry: Optional[RetryCallback] = None,
) -> Suggestions:
    """Produce the valid commit message suggestions for ``insights``.

    Parameters
    ----------
    config : PiqnoteConfig
        Loaded configuration.
    insights : DiffInsights
        Summary of the diff.
    generator : Generator, optional
        Generator to use; selected from ``config`` when omitted.
    offline : bool, optional
        Force the offline generator when selecting one.
    max_attempts : int, optional
        Number of generation rounds before giving up.
    candidate_count : int, optional
        Candidates requested per round from generators with
        ``generate_many``; others are asked for a single one.
    on_retry : callable, optional
        Called as ``on_retry(attempt, max_attempts, reason)`` after a
        round without a valid candidate.

    Returns
    -------
    Suggestions
        All valid candidates of the first successful round.

    Raises
    ------
    NoValidMessageError
        If no round produced a valid candidate.
    """
    generator = generator or select_generator(config, offline=offline)
    request = GenerationRequest(insights=insights, language=config.language, style=config.commit.style)
    count = candidate_count if hasattr(generator, "generate_many") else 1

    for attempt in range(1, max_attempts + 1):
        responses = generate_candidates(generator, request, count)
        candidates = [evaluate(r.subject, r.bullets, config, insights) for r in responses]
        valid = [candidate for candidate in candidates if candidate.validation.valid]
        if valid:
            logger.debug("Attempt %d produced %d valid suggestion(s)", attempt, len(valid))
            return Suggestions(messages=[c.message for c in valid], raw_candidates=valid)

        reasons = [reason for c in candidates for reason in c.validation.reasons]
        reason = reasons[0] if reasons else "Validation failed"
        logger.info("Regenerating suggestions (attempt %d/%d) due to: %s", attempt, max_attempts, reason)
        if on_retry is not None:
            on_retry(attempt, max_attempts, reason)

    raise NoValidMessageError(
        f"Unable to generate a valid Conventional Commits message after {max_attempts} attempts"
    )
