"""Tests for publishing to the docs repository."""

from __future__ import annotations

import base64
import subprocess
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from conftest import FakeGitHubClient
from docket.exceptions import PublishError
from docket.github import GitHubClient
from docket.publisher import DocsPublisher


class RecordingGitHubClient(FakeGitHubClient):
    """Records pull requests and serves a fixed set of branches."""

    def __init__(self, branches: set[str] | None = None) -> None:
        super().__init__()
        self.branches = branches or set()
        self.pull_requests: list[dict[str, str]] = []

    def branch_exists(self, full_name: str, branch: str) -> bool:
        return branch in self.branches

    def create_pull_request(
        self, full_name: str, *, base: str, head: str, title: str, body: str = ""
    ) -> str:
        self.pull_requests.append({"repo": full_name, "base": base, "head": head, "title": title})
        return f"https://github.com/{full_name}/pull/1"


class FakeGit:
    """Stands in for `subprocess.run`, answering git commands from a table.

    `-c` options are recorded apart from the commands they precede.
    """

    def __init__(self, outputs: dict[str, str] | None = None) -> None:
        self.outputs = outputs or {}
        self.commands: list[list[str]] = []
        self.configs: list[list[str]] = []

    def __call__(self, args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        args = list(args)
        config = []
        while len(args) > 2 and args[1] == "-c":
            config.append(args[2])
            del args[1:3]
        self.commands.append(args)
        self.configs.append(config)
        return subprocess.CompletedProcess(args, 0, stdout=self.outputs.get(args[1], ""))


@pytest.fixture
def git(monkeypatch: pytest.MonkeyPatch) -> FakeGit:
    """Replace git invocations with a recorder."""
    fake = FakeGit()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


@pytest.fixture
def github() -> RecordingGitHubClient:
    """A GitHub client where only the docs branch exists."""
    return RecordingGitHubClient({"versioned_plugin_docs"})


@pytest.fixture
def publisher(tmp_path: Path, github: RecordingGitHubClient) -> DocsPublisher:
    """A publisher for a checkout below a temporary directory."""
    return DocsPublisher(tmp_path / "logstash-docs", github)


class TestDocsPublisher:
    """Tests for DocsPublisher."""

    def test_empty_repo_name(self, tmp_path: Path) -> None:
        """Test that a docs repository must be named."""
        with pytest.raises(PublishError):
            DocsPublisher(tmp_path, GitHubClient(), repo_name="")

    def test_clone_url_has_no_token(self, publisher: DocsPublisher) -> None:
        """Test that the token never becomes part of the remote URL."""
        assert publisher.clone_url == "https://github.com/elastic/logstash-docs.git"

    def test_token_passed_per_command(self, publisher: DocsPublisher, git: FakeGit) -> None:
        """Test that only network commands receive the token, as an HTTP header."""
        publisher.clone()
        publisher.publish("new_content", message="m", title="t")

        header = "http.extraheader=AUTHORIZATION: basic " + base64.b64encode(
            b"x-access-token:test-token"
        ).decode()
        by_command = {command[1]: config for command, config in zip(git.commands, git.configs)}
        assert by_command["clone"] == [header]
        assert by_command["push"] == [header]
        assert by_command["commit"] == []
        assert all("test-token" not in part for command in git.commands for part in command)

    def test_anonymous_clone(self, tmp_path: Path, git: FakeGit) -> None:
        """Test that anonymous clones carry no credentials."""
        DocsPublisher(tmp_path / "logstash-docs", GitHubClient()).clone()

        assert git.configs[0] == []

    def test_clone(self, publisher: DocsPublisher, git: FakeGit) -> None:
        """Test cloning and checking out the docs branch."""
        publisher.clone()

        assert git.commands[0][:2] == ["git", "clone"]
        assert git.commands[1] == ["git", "checkout", "versioned_plugin_docs"]

    def test_clone_reuses_checkout(self, publisher: DocsPublisher, git: FakeGit) -> None:
        """Test that an existing checkout is not cloned again."""
        (publisher.repo_path / ".git").mkdir(parents=True)

        publisher.clone()

        assert git.commands == [["git", "checkout", "versioned_plugin_docs"]]

    def test_rebuild_since(self, publisher: DocsPublisher, git: FakeGit) -> None:
        """Test that rebuilds look back a day before the last commit."""
        git.outputs["log"] = "2025-01-15"

        assert publisher.last_commit_date() == datetime(2025, 1, 15, tzinfo=UTC)
        assert publisher.rebuild_since() == datetime(2025, 1, 14, tzinfo=UTC)

    def test_unexpected_log_output(self, publisher: DocsPublisher, git: FakeGit) -> None:
        """Test that unparseable commit dates are an error."""
        git.outputs["log"] = "fatal: not a date"

        with pytest.raises(PublishError):
            publisher.last_commit_date()

    def test_has_changes(self, publisher: DocsPublisher, git: FakeGit) -> None:
        """Test detecting changes from the porcelain status."""
        assert not publisher.has_changes()

        git.outputs["status"] = "?? docs/versioned-plugins/inputs/beats-v9.0.0.asciidoc\n"
        assert publisher.has_changes()

    def test_publish(
        self, publisher: DocsPublisher, git: FakeGit, github: RecordingGitHubClient
    ) -> None:
        """Test committing to a new branch and opening a pull request."""
        url = publisher.publish("new_content", message="update docs", title="Update docs")

        assert url == "https://github.com/elastic/logstash-docs/pull/1"
        assert [command[1] for command in git.commands] == ["checkout", "add", "commit", "push"]
        assert git.commands[0] == ["git", "checkout", "-b", "new_content"]
        assert github.pull_requests == [
            {
                "repo": "elastic/logstash-docs",
                "base": "versioned_plugin_docs",
                "head": "new_content",
                "title": "Update docs",
            }
        ]

    def test_publish_existing_branch(
        self, publisher: DocsPublisher, git: FakeGit, github: RecordingGitHubClient
    ) -> None:
        """Test that an existing branch blocks a new pull request."""
        github.branches.add("new_content")

        assert publisher.publish("new_content", message="m", title="t") is None
        assert git.commands == []
        assert github.pull_requests == []

    def test_git_failure(self, publisher: DocsPublisher, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that failing git commands raise PublishError."""

        def fail(args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
            raise subprocess.CalledProcessError(128, args, stderr="fatal: no remote")

        monkeypatch.setattr(subprocess, "run", fail)

        with pytest.raises(PublishError, match="git status failed"):
            publisher.has_changes()

    def test_git_missing(self, publisher: DocsPublisher, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a missing git executable raises PublishError."""

        def missing(args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
            raise FileNotFoundError("git")

        monkeypatch.setattr(subprocess, "run", missing)

        with pytest.raises(PublishError, match="not installed"):
            publisher.has_changes()
