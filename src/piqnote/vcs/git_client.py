"""
Git client implementation for piqnote.

This module wraps the Git operations required by the commit assistant:
reading staged or unstaged diffs, filtering ignored paths, staging,
committing and simple branch handling. All subprocess calls go through
:meth:`GitClient._run` so that unit tests can mock a single seam.
"""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional


logger = logging.getLogger(__name__)
# Attach a null handler to avoid logging errors when the root logger is not
# configured. Logs will propagate to the root when configured by the CLI.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


DEFAULT_BRANCH = "main"


class GitError(Exception):
    """Raised when a Git command fails."""

    pass


class NoChangesError(Exception):
    """Raised when there is neither a staged nor an unstaged change to describe."""

    pass


@dataclass
class CollectedDiff:
    """Diff text of the changes a commit will describe."""

    diff: str
    files: List[str]
    staged: bool


class GitClient:
    """Client for interacting with a Git repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Find the root of the Git repository starting from ``start``.

        Walk upwards until a ``.git`` entry is found or the filesystem
        root is reached.
        """
        current = start.resolve()
        while True:
            if (current / ".git").exists():
                return current
            if current.parent == current:
                return None
            current = current.parent

    # ------------------------------------------------------------------
    # Basic Git commands
    # ------------------------------------------------------------------
    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        Raises
        ------
        GitError
            If the command exits with a non-zero status when ``check`` is True.
        """
        full_cmd = ["git"] + args
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            logger.error("Failed to execute git: %s", exc)
            raise GitError(f"Failed to execute git: {exc}") from exc

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            raise GitError(result.stderr.strip() or result.stdout.strip())
        return result

    @staticmethod
    def _lines(output: str) -> List[str]:
        return [line.strip() for line in output.splitlines() if line.strip()]

    # ------------------------------------------------------------------
    # Change detection
    # ------------------------------------------------------------------
    def get_staged_files(self) -> List[str]:
        result = self._run(["diff", "--cached", "--name-only"], check=False)
        return self._lines(result.stdout) if result.returncode == 0 else []

    def get_unstaged_files(self) -> List[str]:
        result = self._run(["diff", "--name-only"], check=False)
        return self._lines(result.stdout) if result.returncode == 0 else []

    def filter_ignored(self, files: List[str]) -> List[str]:
        """Drop the paths matched by ``.gitignore`` rules.

        ``git check-ignore`` exits with 1 when nothing is ignored, so the
        exit status is not treated as an error.
        """
        if not files:
            return []
        result = self._run(["check-ignore", "--"] + list(files), check=False)
        ignored = set(self._lines(result.stdout))
        return [path for path in files if path not in ignored]

    def get_diff_for_files(self, files: List[str], staged: bool) -> str:
        """Return the unified diff of ``files``; ``--cached`` when ``staged``."""
        if not files:
            return ""
        args = ["diff"]
        if staged:
            args.append("--cached")
        result = self._run(args + ["--"] + list(files), check=True)
        return result.stdout

    def collect_diff(self) -> CollectedDiff:
        """Return the staged diff, or the unstaged one when nothing is staged.

        Raises
        ------
        NoChangesError
            If neither staged nor unstaged (non-ignored) changes exist.
        """
        staged_files = self.filter_ignored(self.get_staged_files())
        if staged_files:
            return CollectedDiff(self.get_diff_for_files(staged_files, True), staged_files, True)

        unstaged_files = self.filter_ignored(self.get_unstaged_files())
        if unstaged_files:
            return CollectedDiff(self.get_diff_for_files(unstaged_files, False), unstaged_files, False)

        raise NoChangesError("No changes to commit")

    # ------------------------------------------------------------------
    # Staging and committing
    # ------------------------------------------------------------------
    def stage_all(self) -> None:
        self._run(["add", "-A"], check=True)

    def commit(self, message: str) -> None:
        """Create a commit with ``message`` verbatim.

        The message is passed through a temporary file (``git commit -F``)
        so multi-line text reaches Git unchanged.
        """
        fd, path = tempfile.mkstemp(prefix="piqnote-", suffix=".txt")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(message)
            self._run(["commit", "-F", path], check=True)
        finally:
            try:
                os.unlink(path)
            except OSError:
                logger.debug("Could not remove temporary message file %s", path)

    # ------------------------------------------------------------------
    # Branch operations
    # ------------------------------------------------------------------
    def get_current_branch(self) -> str:
        """Return the current branch, ``main`` when detached or unknown."""
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"], check=False)
        name = result.stdout.strip()
        if result.returncode == 0 and name and name != "HEAD":
            return name
        return DEFAULT_BRANCH

    def get_branches(self) -> List[str]:
        result = self._run(["branch", "--list", "--format=%(refname:short)"], check=False)
        return self._lines(result.stdout) if result.returncode == 0 else []

    def branch_exists(self, branch_name: str) -> bool:
        return branch_name in self.get_branches()

    def checkout_branch(self, branch_name: str) -> None:
        self._run(["checkout", branch_name], check=True)

    def create_branch(self, branch_name: str) -> None:
        """Create ``branch_name`` and switch to it."""
        self._run(["checkout", "-b", branch_name], check=True)

    def push_current_branch(self) -> str:
        """Push the current branch to ``origin`` and set its upstream."""
        branch = self.get_current_branch()
        self._run(["push", "-u", "origin", branch], check=True)
        return branch
