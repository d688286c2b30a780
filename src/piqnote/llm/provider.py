"""
Shared types of the commit message generators.

Every generator exposes ``generate(request)``; generators that can
produce several candidates cheaply also expose
``generate_many(request, count)``. :func:`generate_candidates` hides
that difference from callers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Sequence

from piqnote.analyzer.diff_analyzer import DiffInsights
from piqnote.policy.rules import contains_artifacts


BULLET_LIMIT = 2
SUBJECT_LIMIT = 72

_DIFF_MARKER = re.compile(r"^[+-]")


@dataclass(frozen=True)
class GenerationRequest:
    """Read-only input of a generator."""

    insights: DiffInsights
    language: str = "en"
    style: str = "conventional"


@dataclass
class GenerationResponse:
    """One candidate message before normalisation."""

    subject: str
    bullets: List[str] = field(default_factory=list)
    rationale: List[str] = field(default_factory=list)


class Generator:
    """Base class of the generators; subclasses implement :meth:`generate`."""

    name = "generator"

    def generate(self, request: GenerationRequest) -> GenerationResponse:
        raise NotImplementedError


def sanitize_bullets(lines: Sequence[str], limit: int = BULLET_LIMIT) -> List[str]:
    """Strip diff markers, drop empty and artifact lines, keep at most ``limit``."""
    cleaned = (_DIFF_MARKER.sub("", line, count=1).strip() for line in lines)
    kept = [line for line in cleaned if line and not contains_artifacts(line)]
    return kept[:limit]


def generate_candidates(generator: Generator, request: GenerationRequest, count: int) -> List[GenerationResponse]:
    """Ask ``generator`` for ``count`` candidates.

    Uses ``generate_many`` when the generator has it, otherwise calls
    ``generate`` ``count`` times.
    """
    generate_many = getattr(generator, "generate_many", None)
    if generate_many is not None:
        return list(generate_many(request, count))[:count]
    return [generator.generate(request) for _ in range(count)]
