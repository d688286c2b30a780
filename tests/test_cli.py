import json

import pytest
from click.testing import CliRunner

import piqnote.cli as cli
from piqnote import __version__
from piqnote.config.loader import CONFIG_FILENAME, ConfigError
from piqnote.vcs.git_client import CollectedDiff, GitClient, GitError, NoChangesError



@pytest.fixture
def repo(tmp_path, monkeypatch):
    (tmp_path / ".git").mkdir()
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def fake_git(monkeypatch, api_diff):
    """Replace the Git client used by the CLI and record what it is asked to do."""

    class FakeGitClient(GitClient):
        calls = []
        collect_error = None
        diff = api_diff
        branches = ["main", "develop"]

        def collect_diff(self):
            if self.collect_error is not None:
                raise self.collect_error
            return CollectedDiff(self.diff, ["server/api/routes/users.ts"], True)

        def get_branches(self):
            return list(self.branches)

        def stage_all(self):
            self.calls.append(("stage_all",))

        def commit(self, message):
            self.calls.append(("commit", message))

        def checkout_branch(self, branch_name):
            self.calls.append(("checkout", branch_name))

        def create_branch(self, branch_name):
            self.calls.append(("create", branch_name))

        def push_current_branch(self):
            self.calls.append(("push",))
            return "feature/x"

    FakeGitClient.calls = []
    monkeypatch.setattr(cli, "GitClient", FakeGitClient)
    return FakeGitClient


def commits(fake):
    return [call[1] for call in fake.calls if call[0] == "commit"]


def test_version():
    result = CliRunner().invoke(cli.main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_commit_outside_repository(monkeypatch, fake_git):
    monkeypatch.setattr(fake_git, "find_repo_root", staticmethod(lambda start: None))
    result = CliRunner().invoke(cli.main, ["commit", "--offline", "--yes"])
    assert result.exit_code == cli.EXIT_NO_REPO
    assert "Not a git repository." in result.output


def test_commit_without_changes(repo, fake_git):
    fake_git.collect_error = NoChangesError("No changes to commit")
    result = CliRunner().invoke(cli.main, ["commit", "--offline", "--yes"])
    assert result.exit_code == cli.EXIT_NO_CHANGES
    assert "No changes to commit." in result.output


def test_commit_git_failure(repo, fake_git):
    fake_git.collect_error = GitError("fatal: bad object")
    result = CliRunner().invoke(cli.main, ["commit", "--offline", "--yes"])
    assert result.exit_code == cli.EXIT_VCS_FAILURE


def test_unexpected_error_exits_generic(repo, fake_git):
    fake_git.collect_error = RuntimeError("boom")
    result = CliRunner().invoke(cli.main, ["commit", "--offline", "--yes"])
    assert result.exit_code == cli.EXIT_GENERIC_ERROR
    assert "Unexpected error: boom" in result.output


def test_commit_yes_offline(repo, fake_git):
    result = CliRunner().invoke(cli.main, ["commit", "--offline", "--yes", "--score"])
    assert result.exit_code == 0, result.output
    assert ("stage_all",) in fake_git.calls
    assert commits(fake_git) == ["chore(api): refine api: router"]
    assert "Quality score" in result.output
    assert "Commit created." in result.output


def test_commit_yes_dry_run(repo, fake_git):
    result = CliRunner().invoke(cli.main, ["commit", "--offline", "--yes", "--dry-run"])
    assert result.exit_code == 0
    assert commits(fake_git) == []
    assert "Dry run: commit skipped" in result.output


def test_commit_yes_commit_failure(repo, fake_git, monkeypatch):
    def failing_commit(self, message):
        raise GitError("hook rejected")

    monkeypatch.setattr(fake_git, "commit", failing_commit)
    result = CliRunner().invoke(cli.main, ["commit", "--offline", "--yes"])
    assert result.exit_code == cli.EXIT_VCS_FAILURE
    assert "hook rejected" in result.output


def test_interactive_accept(repo, fake_git):
    result = CliRunner().invoke(cli.main, ["commit", "--offline"], input="2\na\n")
    assert result.exit_code == 0, result.output
    assert commits(fake_git) == ["chore(api): fix api: users"]
    assert "Suggestions:" in result.output


def test_interactive_edit_subject(repo, fake_git):
    result = CliRunner().invoke(cli.main, ["commit", "--offline"], input="1\ns\nadd retry to user routes\na\n")
    assert result.exit_code == 0, result.output
    assert commits(fake_git) == ["chore(api): add retry to user routes"]


def test_interactive_edit_bullets_without_editor(repo, fake_git, monkeypatch):
    monkeypatch.delenv("EDITOR", raising=False)
    monkeypatch.delenv("VISUAL", raising=False)
    result = CliRunner().invoke(
        cli.main, ["commit", "--offline"], input="1\nb\nwrap handlers in retry\n.\na\n"
    )
    assert result.exit_code == 0, result.output
    assert commits(fake_git) == ["chore(api): refine api: router\n- wrap handlers in retry"]


def test_interactive_abort(repo, fake_git):
    result = CliRunner().invoke(cli.main, ["commit", "--offline"], input="1\nq\ny\n")
    assert result.exit_code == cli.EXIT_ABORTED
    assert commits(fake_git) == []


def test_interactive_dry_run(repo, fake_git):
    result = CliRunner().invoke(cli.main, ["commit", "--offline", "--dry-run"], input="1\na\n")
    assert result.exit_code == 0
    assert commits(fake_git) == []
    assert "Dry run: commit skipped" in result.output
    assert "chore(api): refine api: router" in result.output


def test_start_creates_branch(repo, fake_git):
    result = CliRunner().invoke(cli.main, ["start"], input="develop\nfeature/x\n")
    assert result.exit_code == 0, result.output
    assert fake_git.calls == [("checkout", "develop"), ("create", "feature/x")]


def test_start_rejects_existing_branch(repo, fake_git):
    result = CliRunner().invoke(cli.main, ["start"], input="main\ndevelop\nfeature/z\n")
    assert result.exit_code == 0, result.output
    assert "Branch develop already exists" in result.output
    assert fake_git.calls == [("checkout", "main"), ("create", "feature/z")]


def test_start_uses_configured_base(repo, fake_git):
    (repo / CONFIG_FILENAME).write_text(json.dumps({"baseBranch": "develop"}), encoding="utf-8")
    result = CliRunner().invoke(cli.main, ["start"], input="\nfeature/y\n")
    assert result.exit_code == 0, result.output
    assert fake_git.calls[0] == ("checkout", "develop")


def test_finish_pushes_and_switches(repo, fake_git):
    result = CliRunner().invoke(cli.main, ["finish", "--base", "develop"])
    assert result.exit_code == 0, result.output
    assert fake_git.calls == [("push",), ("checkout", "develop")]
    assert "Pushed feature/x" in result.output


def test_finish_push_failure(repo, fake_git, monkeypatch):
    def failing_push(self):
        raise GitError("no upstream")

    monkeypatch.setattr(fake_git, "push_current_branch", failing_push)
    result = CliRunner().invoke(cli.main, ["finish"])
    assert result.exit_code == cli.EXIT_VCS_FAILURE


def test_config_writes_rc(repo):
    result = CliRunner().invoke(cli.main, ["config", "--api-key", "tok"])
    assert result.exit_code == 0, result.output
    data = json.loads((repo / CONFIG_FILENAME).read_text(encoding="utf-8"))
    assert data["offline"] is False
    assert data["ai"]["provider"] == "github"
    assert data["ai"]["apiKey"] == "tok"
    assert data["ai"]["maxTokens"] == 120


def test_config_detects_environment_key(repo, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    result = CliRunner().invoke(cli.main, ["config", "--provider", "openai", "--model", "gpt-4o"])
    assert result.exit_code == 0, result.output
    ai = json.loads((repo / CONFIG_FILENAME).read_text(encoding="utf-8"))["ai"]
    assert ai == {"provider": "openai", "model": "gpt-4o", "apiKey": "env:OPENAI_API_KEY"}


def test_config_without_key_warns(repo):
    result = CliRunner().invoke(cli.main, ["config"])
    assert result.exit_code == 0
    assert "No API key provided" in result.output


def test_config_write_failure(repo, monkeypatch):
    def failing_save(root, updates):
        raise ConfigError("read-only")

    monkeypatch.setattr(cli, "save_config", failing_save)
    result = CliRunner().invoke(cli.main, ["config"])
    assert result.exit_code == cli.EXIT_CONFIG_ERROR
