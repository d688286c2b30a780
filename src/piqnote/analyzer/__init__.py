"""
Diff analysis for piqnote.

This package turns unified diff text into :class:`DiffInsights` and
scores finished commit messages. See
:mod:`piqnote.analyzer.diff_analyzer` and :mod:`piqnote.analyzer.scorer`
for details.
"""

from .diff_analyzer import DiffInsights, analyze_diff  # noqa: F401
from .scorer import CommitScore, ScoreDetail, score_commit  # noqa: F401
