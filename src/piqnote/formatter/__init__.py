"""
Commit message normalisation and formatting.

See :mod:`piqnote.formatter.commit_formatter` for details.
"""

from .commit_formatter import format_commit, normalize_subject, truncate  # noqa: F401
