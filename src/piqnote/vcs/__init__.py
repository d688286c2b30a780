"""
Version control system (VCS) integration.

This package contains the :class:`GitClient`, which reads staged or
unstaged diffs, stages and commits, and handles simple branch
operations.
"""

from .git_client import CollectedDiff, GitClient, GitError, NoChangesError  # noqa: F401
