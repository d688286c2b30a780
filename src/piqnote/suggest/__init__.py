"""
Suggestion pipeline and interactive review.

:mod:`piqnote.suggest.orchestrator` turns diff insights into validated
suggestions; :mod:`piqnote.suggest.review` lets the operator refine
them.
"""

from .orchestrator import MAX_ATTEMPTS, NoValidMessageError, Suggestions, build_suggestions  # noqa: F401
from .review import Prompter, ReviewAction, ReviewLoop, ReviewOutcome, ReviewResult, manual_entry  # noqa: F401
