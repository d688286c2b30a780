"""
Deterministic, network-free generator built on diff heuristics.
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


class LocalGenerator(Generator):
    """Build subjects from the diff summary and topics."""

    name = "local"

    @staticmethod
    def _subject(request: GenerationRequest, lead: str) -> str:
        scope = request.insights.scope
        prefix = f"{scope}: " if scope else ""
        return f"{prefix}{lead}"[:SUBJECT_LIMIT].strip()

    def generate(self, request: GenerationRequest) -> GenerationResponse:
        insights = request.insights
        return GenerationResponse(
            subject=self._subject(request, insights.summary),
            bullets=sanitize_bullets(insights.bullet_points),
        )

    def generate_many(self, request: GenerationRequest, count: int) -> List[GenerationResponse]:
        """Return ``count`` candidates, the i-th led by the i-th topic."""
        insights = request.insights
        responses: List[GenerationResponse] = []
        for index in range(count):
            if index < len(insights.topics):
                lead = insights.topics[index]
            elif insights.topics:
                lead = insights.topics[0]
            else:
                lead = insights.summary
            responses.append(
                GenerationResponse(
                    subject=self._subject(request, lead),
                    bullets=sanitize_bullets(insights.bullet_points[index:]),
                )
            )
        return responses
