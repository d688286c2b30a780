"""
Informational quality score for a finished commit message.

The score is an additive heuristic between 0 and 100. It never blocks a
commit; the CLI only displays it when ``--score`` is given.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List

from piqnote.analyzer.diff_analyzer import DiffInsights


MAX_SCORE = 100

_NON_IMPERATIVE = {"fixes", "fixed", "fixing", "adds", "added", "adding", "updates", "updated"}
_TYPE_TOKEN = re.compile(
    r"\b(feat|fix|chore|docs|refactor|perf|test|build|ci|style|revert)(\([^)]*\))?!?:"
)


@dataclass
class ScoreDetail:
    label: str
    points: int
    reason: str


@dataclass
class CommitScore:
    total: int
    details: List[ScoreDetail] = field(default_factory=list)


def _is_imperative(subject: str) -> bool:
    words = subject.strip().split()
    if not words:
        return False
    return words[0].lower() not in _NON_IMPERATIVE and "please" not in subject.lower()


def score_commit(message: str, insights: DiffInsights, bullet_prefix: str = "-") -> CommitScore:
    """Score ``message`` against the diff it describes."""
    bullet_prefix = bullet_prefix.strip() or "-"
    lines = message.split("\n")
    subject = lines[0]
    # The description is what should read as an imperative, not the type prefix.
    description = subject.split(":", 1)[1] if _TYPE_TOKEN.match(subject) else subject
    details: List[ScoreDetail] = []

    if len(subject) <= 72:
        details.append(ScoreDetail("Subject length", 20, "Within 72 characters"))
    else:
        details.append(ScoreDetail("Subject length", 5, "Too long"))

    if _is_imperative(description):
        details.append(ScoreDetail("Imperative mood", 15, "Starts with a verb"))
    else:
        details.append(ScoreDetail("Imperative mood", 5, "Consider imperative verb"))

    if _TYPE_TOKEN.search(message):
        details.append(ScoreDetail("Conventional style", 15, "Uses Conventional Commits"))
    else:
        details.append(ScoreDetail("Conventional style", 5, "Add a type prefix"))

    if any(line.strip().startswith(bullet_prefix) for line in lines[1:]):
        details.append(ScoreDetail("Bullets", 15, "Includes bullet points"))
    else:
        details.append(ScoreDetail("Bullets", 5, "Add bullets for clarity"))

    if insights.is_frontend:
        details.append(ScoreDetail("Frontend awareness", 10, "Mentions UI-related changes"))
    else:
        details.append(ScoreDetail("Frontend awareness", 8, "General changes"))

    if insights.files_touched > 3:
        details.append(ScoreDetail("Scope breadth", 8, "Multiple files"))
    else:
        details.append(ScoreDetail("Scope breadth", 6, "Focused change"))

    total = min(MAX_SCORE, sum(detail.points for detail in details))
    return CommitScore(total=total, details=details)
