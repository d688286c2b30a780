import unittest

from piqnote.analyzer.diff_analyzer import analyze_diff
from piqnote.config.loader import PiqnoteConfig
from piqnote.suggest.orchestrator import NoValidMessageError, Suggestions, evaluate
from piqnote.suggest.review import Prompter, ReviewAction, ReviewLoop, ReviewOutcome, manual_entry


DIFF = """\
--- a/server/api/client.py
+++ b/server/api/client.py
-    timeout = None
+    timeout = retry_timeout(attempts)
"""


class ScriptedPrompter(Prompter):
    def __init__(self, actions, subjects=(), bullets=(), picks=(), confirms=()):
        self.actions = list(actions)
        self.subjects = list(subjects)
        self.bullets = list(bullets)
        self.picks = list(picks)
        self.confirms = list(confirms)
        self.shown = []
        self.warnings = []
        self.subject_defaults = []

    def pick_suggestion(self, messages):
        return self.picks.pop(0)

    def choose_action(self):
        return self.actions.pop(0)

    def edit_subject(self, initial):
        self.subject_defaults.append(initial)
        return self.subjects.pop(0)

    def edit_bullets(self, initial):
        return self.bullets.pop(0)

    def confirm_abort(self):
        return self.confirms.pop(0)

    def show_message(self, message, score=None):
        self.shown.append((message, score))

    def warn(self, text):
        self.warnings.append(text)


class TestReviewLoop(unittest.TestCase):
    def setUp(self) -> None:
        self.config = PiqnoteConfig()
        self.insights = analyze_diff(DIFF)
        self.committed = []
        self.rounds = 0

    def suggestions(self, *subjects):
        candidates = [evaluate(s, ["explain install"], self.config, self.insights) for s in subjects]
        return Suggestions(messages=[c.message for c in candidates], raw_candidates=candidates)

    def suggest_rounds(self, *rounds):
        def suggest():
            result = rounds[min(self.rounds, len(rounds) - 1)]
            self.rounds += 1
            if isinstance(result, Exception):
                raise result
            return self.suggestions(*result)

        return suggest

    def run_loop(self, prompter, suggest, commit=True, show_score=False):
        loop = ReviewLoop(self.config, self.insights, prompter, suggest, show_score=show_score)
        return loop.run(self.committed.append if commit else None)

    def test_accept_commits(self) -> None:
        prompter = ScriptedPrompter([ReviewAction.ACCEPT])
        result = self.run_loop(prompter, self.suggest_rounds(["docs: describe setup"]))
        self.assertEqual(result.outcome, ReviewOutcome.COMMITTED)
        self.assertEqual(self.committed, ["docs: describe setup\n- explain install"])
        self.assertEqual(result.subject, "docs: describe setup")
        self.assertIsNone(prompter.shown[0][1])

    def test_accept_without_commit_is_skipped(self) -> None:
        prompter = ScriptedPrompter([ReviewAction.ACCEPT])
        result = self.run_loop(prompter, self.suggest_rounds(["docs: describe setup"]), commit=False)
        self.assertEqual(result.outcome, ReviewOutcome.SKIPPED)
        self.assertEqual(result.message, "docs: describe setup\n- explain install")
        self.assertEqual(self.committed, [])

    def test_pick_second_suggestion(self) -> None:
        prompter = ScriptedPrompter([ReviewAction.ACCEPT], picks=[1])
        self.run_loop(prompter, self.suggest_rounds(["docs: describe setup", "fix: handle timeout"]))
        self.assertEqual(self.committed, ["fix(api): handle timeout\n- explain install"])

    def test_edit_subject_is_normalised(self) -> None:
        prompter = ScriptedPrompter(
            [ReviewAction.EDIT_SUBJECT, ReviewAction.ACCEPT], subjects=["add retry support."]
        )
        self.run_loop(prompter, self.suggest_rounds(["docs: describe setup"]))
        self.assertEqual(prompter.subject_defaults, ["docs: describe setup"])
        self.assertEqual(self.committed, ["chore(api): add retry support\n- explain install"])

    def test_edit_bullets_are_sanitised(self) -> None:
        prompter = ScriptedPrompter(
            [ReviewAction.EDIT_BULLETS, ReviewAction.ACCEPT],
            bullets=[["touch dist/index.js", "improve retry logic"]],
        )
        self.run_loop(prompter, self.suggest_rounds(["docs: describe setup"]))
        self.assertEqual(self.committed, ["docs: describe setup\n- improve retry logic"])

    def test_regenerate_loads_new_round(self) -> None:
        prompter = ScriptedPrompter([ReviewAction.REGENERATE, ReviewAction.ACCEPT])
        self.run_loop(prompter, self.suggest_rounds(["docs: describe setup"], ["docs: explain retries"]))
        self.assertEqual(self.rounds, 2)
        self.assertEqual(self.committed, ["docs: explain retries\n- explain install"])

    def test_abort_requires_confirmation(self) -> None:
        prompter = ScriptedPrompter([ReviewAction.ABORT, ReviewAction.ABORT], confirms=[False, True])
        result = self.run_loop(prompter, self.suggest_rounds(["docs: describe setup"]))
        self.assertEqual(result.outcome, ReviewOutcome.ABORTED)
        self.assertIsNone(result.message)
        self.assertEqual(len(prompter.shown), 2)
        self.assertEqual(self.committed, [])

    def test_invalid_accept_regenerates(self) -> None:
        prompter = ScriptedPrompter(
            [ReviewAction.EDIT_SUBJECT, ReviewAction.ACCEPT, ReviewAction.ACCEPT], subjects=["fixed stuff"]
        )
        self.run_loop(prompter, self.suggest_rounds(["docs: describe setup"]))
        self.assertEqual(prompter.warnings[0], "Commit message rejected:")
        self.assertIn("- Subject should use imperative mood", prompter.warnings)
        self.assertEqual(self.rounds, 2)
        self.assertEqual(self.committed, ["docs: describe setup\n- explain install"])

    def test_exhaustion_switches_to_manual_entry(self) -> None:
        prompter = ScriptedPrompter(
            [ReviewAction.ACCEPT],
            subjects=["stuff", "feat: add retry support"],
            bullets=[[], ["retry on 503"]],
        )
        result = self.run_loop(prompter, self.suggest_rounds(NoValidMessageError("exhausted")))
        self.assertEqual(prompter.warnings[0], "Automatic suggestions failed; switching to manual entry.")
        self.assertIn("Manual entry invalid:", prompter.warnings)
        self.assertEqual(prompter.subject_defaults[0], "feat(api): describe change")
        self.assertEqual(result.outcome, ReviewOutcome.COMMITTED)
        self.assertEqual(self.committed, ["feat(api): add retry support\n- retry on 503"])

    def test_score_is_shown_on_request(self) -> None:
        prompter = ScriptedPrompter([ReviewAction.ACCEPT])
        self.run_loop(prompter, self.suggest_rounds(["docs: describe setup"]), show_score=True)
        score = prompter.shown[0][1]
        self.assertIsNotNone(score)
        self.assertTrue(0 <= score.total <= 100)


class TestManualEntry(unittest.TestCase):
    def test_configured_scope_is_used(self) -> None:
        config = PiqnoteConfig(scope="core")
        prompter = ScriptedPrompter([], subjects=["fix: handle timeout"], bullets=[["retry on 503"]])
        candidate = manual_entry(config, analyze_diff(""), prompter)
        self.assertEqual(prompter.subject_defaults, ["feat(core): describe change"])
        self.assertEqual(candidate.message, "fix(core): handle timeout\n- retry on 503")
        self.assertTrue(candidate.validation.valid)


if __name__ == "__main__":
    unittest.main()
