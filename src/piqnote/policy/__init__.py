"""
Commit-style policy for piqnote.

:mod:`piqnote.policy.rules` holds the fixed rule sets and text
predicates; :mod:`piqnote.policy.validator` applies them to a message.
"""

from .rules import ALLOWED_TYPES, ARTIFACT_PATTERNS, VAGUE_TERMS, ParsedSubject, parse_subject  # noqa: F401
from .validator import ValidationResult, validate  # noqa: F401
