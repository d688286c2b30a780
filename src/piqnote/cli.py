"""
Command line interface for piqnote.

This module defines the ``main`` command group used as the entry point
of the ``piqnote`` console script. The ``commit`` command orchestrates
repository detection, configuration loading, diff analysis, suggestion
generation, the interactive review and the final commit. ``start``,
``finish`` and ``config`` cover the small branch workflow and the
provider settings. Recoverable problems are shown as warnings; only
precondition and Git failures end the process with a non-zero code.
"""

from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

import click

from piqnote import __version__
from piqnote.analyzer.diff_analyzer import analyze_diff
from piqnote.analyzer.scorer import CommitScore, score_commit
from piqnote.config.loader import PROVIDERS, ConfigError, PiqnoteConfig, load_config, save_config
from piqnote.llm.factory import API_KEY_ENV_VARS, GITHUB_MODELS_ENDPOINT, select_generator
from piqnote.suggest.orchestrator import NoValidMessageError, Suggestions, build_suggestions
from piqnote.suggest.review import Prompter, ReviewAction, ReviewLoop, ReviewOutcome
from piqnote.vcs.git_client import GitClient, GitError, NoChangesError

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_NO_REPO = 3
EXIT_NO_CHANGES = 4
EXIT_CONFIG_ERROR = 5
EXIT_VCS_FAILURE = 6
EXIT_ABORTED = 8
EXIT_NO_VALID_MESSAGE = 9


# ---------------------------------------------------------------------------
# Progress and status display utilities
# ---------------------------------------------------------------------------

class ProgressIndicator:
    """Simple progress indicator for user feedback."""

    def __init__(self, message: str):
        self.message = message
        self.start_time = 0.0

    def __enter__(self):
        self.start_time = time.time()
        click.echo(f"→ {self.message}...")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            elapsed = time.time() - self.start_time
            click.echo(f"  ✓ Done ({elapsed:.1f}s)")
        return False


def print_info(message: str, indent: int = 0):
    """Print an info message."""
    prefix = "  " * indent
    click.echo(f"{prefix}ℹ {message}")


def print_success(message: str, indent: int = 0):
    """Print a success message."""
    prefix = "  " * indent
    click.echo(click.style(f"{prefix}✓ {message}", fg="green"))


def print_warning(message: str, indent: int = 0):
    """Print a warning message."""
    prefix = "  " * indent
    click.echo(click.style(f"{prefix}⚠ {message}", fg="yellow"))


def print_error(message: str, indent: int = 0):
    """Print an error message."""
    prefix = "  " * indent
    click.echo(click.style(f"{prefix}✗ {message}", fg="red"), err=True)


def print_message_box(message: str):
    """Print a commit message inside a box."""
    click.echo("   ┌" + "─" * 76 + "┐")
    for line in message.splitlines():
        click.echo(f"   │ {line[:74].ljust(74)} │")
    click.echo("   └" + "─" * 76 + "┘")


def print_score(score: CommitScore):
    click.echo(click.style(f"\n📊 Quality score: {score.total}/100", fg="yellow"))
    for detail in score.details:
        click.echo(f"   - {detail.label}: {detail.points} ({detail.reason})")


# ---------------------------------------------------------------------------
# Interactive prompts
# ---------------------------------------------------------------------------

_ACTION_KEYS = {
    "a": ReviewAction.ACCEPT,
    "s": ReviewAction.EDIT_SUBJECT,
    "b": ReviewAction.EDIT_BULLETS,
    "r": ReviewAction.REGENERATE,
    "q": ReviewAction.ABORT,
}


class ClickPrompter(Prompter):
    """Terminal implementation of the review prompts."""

    def __init__(self, config: PiqnoteConfig) -> None:
        self.config = config

    def pick_suggestion(self, messages: Sequence[str]) -> int:
        click.echo("\n💡 Suggestions:")
        for idx, message in enumerate(messages, start=1):
            click.echo(f"   {idx}. {message.splitlines()[0]}")
        choice = click.prompt(
            "   Select a suggestion",
            type=click.IntRange(1, len(messages)),
            default=1,
        )
        return choice - 1

    def choose_action(self) -> ReviewAction:
        click.echo("   A = Accept | S = Edit subject | B = Edit bullets | R = Regenerate | Q = Abort")
        choice = click.prompt(
            "   Choose action",
            type=click.Choice(list(_ACTION_KEYS), case_sensitive=False),
            default="a",
            show_choices=False,
        )
        return _ACTION_KEYS[choice.strip().lower()]

    def edit_subject(self, initial: str) -> str:
        return click.prompt(
            f"   Edit subject (<={self.config.commit.max_subject_length} chars)",
            default=initial,
        ).strip()

    def edit_bullets(self, initial: Sequence[str]) -> List[str]:
        text = "\n".join(initial)
        if os.environ.get("EDITOR") or os.environ.get("VISUAL"):
            edited = click.edit(text)
            if edited is None:
                print_warning("Editor closed without saving; keeping bullets")
                return list(initial)
            return [line.strip() for line in edited.splitlines() if line.strip()]

        click.echo("\n   💡 No EDITOR environment variable set.")
        click.echo("   Enter one bullet per line; end with a line containing only a period (.)")
        lines: List[str] = []
        while True:
            line = click.prompt("   ", default="", show_default=False)
            if line.strip() == ".":
                break
            if line.strip():
                lines.append(line.strip())
        return lines

    def confirm_abort(self) -> bool:
        return click.confirm("   Abort?", default=True)

    def show_message(self, message: str, score: Optional[CommitScore] = None) -> None:
        click.echo("\n💬 Suggestion:")
        print_message_box(message)
        if score is not None:
            print_score(score)

    def warn(self, text: str) -> None:
        print_warning(text)


# ---------------------------------------------------------------------------
# Core functionality
# ---------------------------------------------------------------------------

@contextmanager
def handle_unexpected_errors() -> Iterator[None]:
    """Turn unexpected exceptions into a logged error and ``EXIT_GENERIC_ERROR``."""
    try:
        yield
    except (click.exceptions.Exit, click.exceptions.Abort, click.ClickException):
        # Click's own control flow; let Click handle it
        raise
    except Exception as exc:
        logger.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        raise click.exceptions.Exit(EXIT_GENERIC_ERROR)


def require_repo(start_dir: Path) -> Path:
    """Return the Git repository root or exit with ``EXIT_NO_REPO``."""
    repo_root = GitClient.find_repo_root(start_dir)
    if repo_root is None:
        print_error("Not a git repository.")
        raise click.exceptions.Exit(EXIT_NO_REPO)
    logger.debug("Repository root: %s", repo_root)
    return repo_root


def _warn_retry(attempt: int, max_attempts: int, reason: str) -> None:
    print_warning(f"Regenerating suggestions (attempt {attempt}/{max_attempts}) due to: {reason}")


@click.group()
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="piqnote")
def main(verbose: bool) -> None:
    """✍️  Commit message assistant for Git repositories.

    Analyzes your changes, suggests Conventional Commits messages and
    lets you review them before committing.
    """
    # force=True reconfigures handlers on repeated invocations (tests).
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        force=True,
    )


@main.command()
@click.option("--score", "show_score", is_flag=True, help="Show the quality score of each suggestion.")
@click.option("--offline", is_flag=True, help="Force the offline generator.")
@click.option("--yes", "yes", is_flag=True, help="Accept the first valid suggestion without prompting.")
@click.option("--dry-run", is_flag=True, help="Print the accepted message without committing.")
def commit(show_score: bool, offline: bool, yes: bool, dry_run: bool) -> None:
    """Generate a commit message for the current changes and commit."""
    with handle_unexpected_errors():
        repo_root = require_repo(Path.cwd())
        config = load_config(repo_root)
        client = GitClient(repo_root)

        try:
            with ProgressIndicator("Reading changes"):
                collected = client.collect_diff()
        except NoChangesError:
            print_warning("No changes to commit.")
            raise click.exceptions.Exit(EXIT_NO_CHANGES)
        except GitError as exc:
            print_error(f"Git error: {exc}")
            raise click.exceptions.Exit(EXIT_VCS_FAILURE)

        kind = "staged" if collected.staged else "unstaged"
        print_info(f"Describing {len(collected.files)} {kind} file{'s' if len(collected.files) != 1 else ''}")
        insights = analyze_diff(collected.diff)
        generator = select_generator(config, offline=offline)
        logger.debug("Using generator: %s", generator.name)

        def suggest() -> Suggestions:
            return build_suggestions(config, insights, generator=generator, on_retry=_warn_retry)

        def apply_commit(message: str) -> None:
            client.stage_all()
            client.commit(message)

        if yes:
            try:
                suggestions = suggest()
            except NoValidMessageError as exc:
                print_error(str(exc))
                raise click.exceptions.Exit(EXIT_NO_VALID_MESSAGE)
            message = suggestions.messages[0]
            click.echo("\n💬 Suggestion:")
            print_message_box(message)
            if show_score:
                print_score(score_commit(message, insights, config.commit.bullet_prefix))
            if dry_run:
                print_info("Dry run: commit skipped")
                raise click.exceptions.Exit(EXIT_SUCCESS)
            try:
                apply_commit(message)
            except GitError as exc:
                print_error(f"Failed to commit changes: {exc}")
                raise click.exceptions.Exit(EXIT_VCS_FAILURE)
            print_success("Commit created.")
            raise click.exceptions.Exit(EXIT_SUCCESS)

        loop = ReviewLoop(config, insights, ClickPrompter(config), suggest, show_score=show_score)
        try:
            result = loop.run(None if dry_run else apply_commit)
        except GitError as exc:
            print_error(f"Failed to commit changes: {exc}")
            raise click.exceptions.Exit(EXIT_VCS_FAILURE)

        if result.outcome == ReviewOutcome.ABORTED:
            print_warning("Aborted.")
            raise click.exceptions.Exit(EXIT_ABORTED)
        if result.outcome == ReviewOutcome.SKIPPED:
            print_info("Dry run: commit skipped")
            click.echo(result.message)
        else:
            print_success("Commit created.")


@main.command()
@click.option("--base", help="Base branch to start from.")
def start(base: Optional[str]) -> None:
    """Create and switch to a new branch from a base branch."""
    with handle_unexpected_errors():
        repo_root = require_repo(Path.cwd())
        config = load_config(repo_root)
        client = GitClient(repo_root)

        base_branch = click.prompt("   Base branch", default=base or config.base_branch).strip()
        while True:
            name = click.prompt("   New branch name", type=str).strip()
            if not name:
                print_warning("Enter branch name")
            elif client.branch_exists(name):
                print_warning(f"Branch {name} already exists")
            else:
                break

        try:
            client.checkout_branch(base_branch)
            client.create_branch(name)
        except GitError as exc:
            print_error(f"Branch operation failed: {exc}")
            raise click.exceptions.Exit(EXIT_VCS_FAILURE)
        print_success(f"Switched to new branch {name} from {base_branch}.")


@main.command()
@click.option("--base", help="Branch to switch back to.")
def finish(base: Optional[str]) -> None:
    """Push the current branch and switch back to the base branch."""
    with handle_unexpected_errors():
        repo_root = require_repo(Path.cwd())
        config = load_config(repo_root)
        client = GitClient(repo_root)
        target = base or config.base_branch

        try:
            branch = client.push_current_branch()
            client.checkout_branch(target)
        except GitError as exc:
            print_error(f"Failed to push or switch branch: {exc}")
            raise click.exceptions.Exit(EXIT_VCS_FAILURE)
        print_success(f"Pushed {branch} and switched back to {target}.")


@main.command("config")
@click.option("--api-key", help="AI API key (token or env:NAME reference).")
@click.option(
    "--provider",
    type=click.Choice(PROVIDERS),
    default="github",
    show_default=True,
    help="AI provider.",
)
@click.option("--model", default="gpt-4o-mini", show_default=True, help="Model identifier.")
def config_command(api_key: Optional[str], provider: str, model: str) -> None:
    """Save provider settings to .piqnoterc."""
    with handle_unexpected_errors():
        repo_root = GitClient.find_repo_root(Path.cwd()) or Path.cwd()
        config = load_config(repo_root)

        if not api_key:
            for name in API_KEY_ENV_VARS.get(provider, ())[:1]:
                if os.environ.get(name):
                    api_key = f"env:{name}"
                    print_info(f"Detected {name} in environment; wiring it in config.")

        ai = {"provider": provider, "model": model}
        key = api_key or config.ai.api_key
        if key:
            ai["apiKey"] = key
        if provider == "github":
            ai.update({"endpoint": GITHUB_MODELS_ENDPOINT, "temperature": 0.2, "maxTokens": 120})
        if not key and provider in API_KEY_ENV_VARS:
            print_warning("No API key provided; provider will fall back to heuristic mode until a token is set.")

        try:
            path = save_config(repo_root, {"ai": ai, "offline": False})
        except ConfigError as exc:
            print_error(f"Configuration error: {exc}")
            raise click.exceptions.Exit(EXIT_CONFIG_ERROR)
        print_success(f"Saved provider={provider}, model={model} to {path.name}.")
