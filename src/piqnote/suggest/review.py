"""
Interactive review of commit message suggestions.

:class:`ReviewLoop` is a small state machine over the operator's
actions. It starts in the *reviewing* state with the candidate the
operator picked and ends in one of the terminal outcomes of
:class:`ReviewOutcome`. All user interaction goes through a
:class:`Prompter`, so the loop can be driven by a scripted prompter in
tests and by :class:`piqnote.cli.ClickPrompter` on a terminal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

from piqnote.analyzer.diff_analyzer import DiffInsights
from piqnote.analyzer.scorer import CommitScore, score_commit
from piqnote.config.loader import PiqnoteConfig
from piqnote.formatter.commit_formatter import format_commit, normalize_subject
from piqnote.policy.validator import validate
from piqnote.suggest.orchestrator import (
    Candidate,
    NoValidMessageError,
    Suggestions,
    resolve_scope,
    sanitize_message_bullets,
)


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


MAX_REASONS_SHOWN = 3


class ReviewAction(str, Enum):
    ACCEPT = "accept"
    EDIT_SUBJECT = "edit-subject"
    EDIT_BULLETS = "edit-bullets"
    REGENERATE = "regenerate"
    ABORT = "abort"


class ReviewOutcome(str, Enum):
    COMMITTED = "committed"
    SKIPPED = "skipped"
    ABORTED = "aborted"


@dataclass
class ReviewResult:
    """Terminal state of a review and the message it settled on."""

    outcome: ReviewOutcome
    message: Optional[str] = None
    subject: Optional[str] = None
    bullets: List[str] = field(default_factory=list)


class Prompter:
    """Interactive prompt collaborator used by :class:`ReviewLoop`."""

    def pick_suggestion(self, messages: Sequence[str]) -> int:
        """Return the index of the chosen message."""
        raise NotImplementedError

    def choose_action(self) -> ReviewAction:
        raise NotImplementedError

    def edit_subject(self, initial: str) -> str:
        raise NotImplementedError

    def edit_bullets(self, initial: Sequence[str]) -> List[str]:
        raise NotImplementedError

    def confirm_abort(self) -> bool:
        raise NotImplementedError

    def show_message(self, message: str, score: Optional[CommitScore] = None) -> None:
        raise NotImplementedError

    def warn(self, text: str) -> None:
        raise NotImplementedError


def manual_entry(config: PiqnoteConfig, insights: DiffInsights, prompter: Prompter) -> Candidate:
    """Ask the operator for subject and bullets until the policy accepts them."""
    scope = resolve_scope(config, insights)
    limit = config.commit.max_bullets
    while True:
        default_subject = f"feat({insights.scope or scope}): describe change"
        subject = normalize_subject(prompter.edit_subject(default_subject), scope)
        bullets = sanitize_message_bullets(prompter.edit_bullets(list(insights.bullet_points)), limit)
        validation = validate(subject, bullets, config.commit)
        if validation.valid:
            message = format_commit(subject, bullets, config.scope_fallback or insights.scope, config.commit)
            return Candidate(subject=subject, bullets=bullets, message=message, validation=validation)
        prompter.warn("Manual entry invalid:")
        for reason in validation.reasons[:MAX_REASONS_SHOWN]:
            prompter.warn(f"- {reason}")


class ReviewLoop:
    """Drive the accept / edit / regenerate / abort cycle.

    Parameters
    ----------
    config : PiqnoteConfig
        Loaded configuration.
    insights : DiffInsights
        Summary of the diff being committed.
    prompter : Prompter
        Interactive prompt collaborator.
    suggest : callable
        Runs one orchestrator round; raises
        :class:`NoValidMessageError` when exhausted.
    show_score : bool, optional
        Attach a :class:`CommitScore` to every displayed message.
    """

    def __init__(
        self,
        config: PiqnoteConfig,
        insights: DiffInsights,
        prompter: Prompter,
        suggest: Callable[[], Suggestions],
        show_score: bool = False,
    ) -> None:
        self.config = config
        self.insights = insights
        self.prompter = prompter
        self.suggest = suggest
        self.show_score = show_score
        self.scope = resolve_scope(config, insights)
        self.subject = ""
        self.bullets: List[str] = []
        self.message = ""

    def _format(self) -> str:
        return format_commit(
            self.subject, self.bullets, self.config.scope_fallback or self.insights.scope, self.config.commit
        )

    def _seed(self) -> None:
        """Load a fresh round of suggestions, or manual entry when exhausted."""
        try:
            suggestions = self.suggest()
        except NoValidMessageError as exc:
            logger.info("%s", exc)
            self.prompter.warn("Automatic suggestions failed; switching to manual entry.")
            manual = manual_entry(self.config, self.insights, self.prompter)
            self.subject = manual.subject
            self.bullets = list(manual.bullets)
            self.message = manual.message
            return
        index = 0
        if len(suggestions.messages) > 1:
            index = self.prompter.pick_suggestion(suggestions.messages)
        candidate = suggestions.raw_candidates[index]
        self.subject = candidate.subject
        self.bullets = list(candidate.bullets)
        self.message = suggestions.messages[index]

    def run(self, commit: Optional[Callable[[str], None]] = None) -> ReviewResult:
        """Review until the message is accepted or the operator aborts.

        ``commit`` receives the accepted message text; without it the
        review ends in :attr:`ReviewOutcome.SKIPPED`.
        """
        self._seed()
        while True:
            score = None
            if self.show_score:
                score = score_commit(self.message, self.insights, self.config.commit.bullet_prefix)
            self.prompter.show_message(self.message, score)
            action = self.prompter.choose_action()

            if action == ReviewAction.EDIT_SUBJECT:
                self.subject = normalize_subject(self.prompter.edit_subject(self.subject), self.scope)
                self.message = self._format()
            elif action == ReviewAction.EDIT_BULLETS:
                edited = self.prompter.edit_bullets(self.bullets)
                self.bullets = sanitize_message_bullets(edited, self.config.commit.max_bullets)
                self.message = self._format()
            elif action == ReviewAction.REGENERATE:
                self._seed()
            elif action == ReviewAction.ABORT:
                if self.prompter.confirm_abort():
                    return ReviewResult(ReviewOutcome.ABORTED)
            elif action == ReviewAction.ACCEPT:
                validation = validate(self.subject, self.bullets, self.config.commit)
                if not validation.valid:
                    self.prompter.warn("Commit message rejected:")
                    for reason in validation.reasons[:MAX_REASONS_SHOWN]:
                        self.prompter.warn(f"- {reason}")
                    # edits are discarded in favour of a fresh round
                    self._seed()
                    continue
                result = ReviewResult(
                    ReviewOutcome.SKIPPED, message=self.message, subject=self.subject, bullets=list(self.bullets)
                )
                if commit is not None:
                    commit(self.message)
                    result.outcome = ReviewOutcome.COMMITTED
                return result
