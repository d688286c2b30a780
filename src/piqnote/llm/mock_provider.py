"""
Offline generator with a rotating verb vocabulary.

Candidates are picked by index, never at random, so repeated runs over
the same diff suggest the same messages.
"""

from __future__ import annotations

from typing import List

from piqnote.llm.provider import (
    SUBJECT_LIMIT,
    GenerationRequest,
    GenerationResponse,
    Generator,
    sanitize_bullets,
)


VERBS = ("refine", "fix", "add", "improve", "update", "tune", "adjust", "harden", "align", "streamline")


def pick_verb(seed: int) -> str:
    return VERBS[seed % len(VERBS)]


class MockGenerator(Generator):
    """Generator used for ``--offline`` runs and as the default provider."""

    name = "mock"

    @staticmethod
    def _subject(request: GenerationRequest, seed: int) -> str:
        insights = request.insights
        if insights.topics:
            topic = insights.topics[seed % len(insights.topics)]
        else:
            topic = insights.summary or "changes"
        scope = f"{insights.scope}: " if insights.scope else ""
        return f"{pick_verb(seed)} {scope}{topic}".strip()[:SUBJECT_LIMIT]

    def generate(self, request: GenerationRequest) -> GenerationResponse:
        return GenerationResponse(
            subject=self._subject(request, 0),
            bullets=sanitize_bullets(request.insights.bullet_points),
        )

    def generate_many(self, request: GenerationRequest, count: int) -> List[GenerationResponse]:
        return [
            GenerationResponse(
                subject=self._subject(request, index),
                bullets=sanitize_bullets(request.insights.bullet_points[index:]),
            )
            for index in range(count)
        ]
