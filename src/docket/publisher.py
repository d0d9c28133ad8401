"""Publishing generated documentation to the docs repository.

The versioned reference is generated into a local clone of the docs
repository. When the run changed anything, the changes are committed to a
fresh branch, pushed, and proposed as a pull request against the docs
branch.

Example:
    publisher = DocsPublisher(output_path / "logstash-docs", github)
    publisher.clone()
    ...
    if publisher.has_changes():
        publisher.publish(
            "versioned_docs_new_content",
            message="updated versioned plugin docs",
            title="auto generated update of versioned plugin documentation",
        )
"""

from __future__ import annotations

import base64
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path

from docket.constants import (
    DEFAULT_DOCS_BRANCH,
    DEFAULT_DOCS_REPO,
    GITHUB_WEB_BASE,
    REBUILD_LOOKBACK_HOURS,
)
from docket.exceptions import PublishError
from docket.github import GitHubClient
from docket.logging import get_logger

logger = get_logger(__name__)


class DocsPublisher:
    """A local checkout of the docs repository and its pull requests.

    Attributes:
        repo_path: Directory of the local checkout.
        repo_name: Docs repository in "owner/repo" format.
        base_branch: Branch documentation is generated on and proposed to.
    """

    def __init__(
        self,
        repo_path: Path,
        github: GitHubClient,
        repo_name: str = DEFAULT_DOCS_REPO,
        base_branch: str = DEFAULT_DOCS_BRANCH,
    ) -> None:
        if not repo_name:
            raise PublishError("Docs repository name cannot be empty")
        self.repo_path = Path(repo_path)
        self.repo_name = repo_name
        self.base_branch = base_branch
        self._github = github

    @property
    def clone_url(self) -> str:
        return f"{GITHUB_WEB_BASE}/{self.repo_name}.git"

    def _auth_config(self) -> list[str]:
        """Per-command git config carrying the token; never written to `.git/config`."""
        if not self._github.authenticated:
            return []
        credentials = base64.b64encode(f"x-access-token:{self._github.token}".encode()).decode()
        return ["-c", f"http.extraheader=AUTHORIZATION: basic {credentials}"]

    def clone(self) -> None:
        """Clone the docs repository and check out the docs branch.

        An existing checkout is reused.
        """
        if (self.repo_path / ".git").exists():
            logger.info(f"Reusing docs checkout at {self.repo_path}")
        else:
            logger.info(f"Cloning {self.repo_name} into {self.repo_path}")
            self.repo_path.parent.mkdir(parents=True, exist_ok=True)
            self._git(
                "clone",
                self.clone_url,
                str(self.repo_path),
                cwd=self.repo_path.parent,
                authenticated=True,
            )
        self._git("checkout", self.base_branch)

    def last_commit_date(self) -> datetime:
        """Date of the checkout's last commit, as midnight UTC."""
        output = self._git("log", "-1", "--date=short", "--pretty=format:%cd")
        try:
            return datetime.strptime(output.strip(), "%Y-%m-%d").replace(tzinfo=timezone.utc)
        except ValueError as e:
            raise PublishError("Unexpected git log output", {"output": output}) from e

    def rebuild_since(self) -> datetime:
        """Default reference time for incremental rebuilds."""
        return self.last_commit_date() - timedelta(hours=REBUILD_LOOKBACK_HOURS)

    def has_changes(self) -> bool:
        """Whether the checkout has uncommitted or untracked changes."""
        return bool(self._git("status", "--porcelain").strip())

    def branch_exists(self, branch: str) -> bool:
        return self._github.branch_exists(self.repo_name, branch)

    def publish(self, branch: str, *, message: str, title: str, body: str = "") -> str | None:
        """Commit every change to a new branch and open a pull request.

        Args:
            branch: Name of the branch to create; must not exist remotely.
            message: Commit message.
            title: Pull request title.
            body: Pull request description.

        Returns:
            The pull request URL, or None if the branch already exists.

        Raises:
            PublishError: If a git command or the pull request fails.
        """
        if self.branch_exists(branch):
            logger.warning(
                f'Branch "{branch}" already exists; not creating a new pull request. '
                "Merge or delete the existing pull request and branch."
            )
            return None

        logger.info(f"Committing changes to {branch}")
        self._git("checkout", "-b", branch)
        self._git("add", ".")
        self._git("commit", "-a", "-m", message)
        self._git("push", "origin", branch, authenticated=True)

        logger.info(f"Creating a pull request against {self.base_branch}")
        url = self._github.create_pull_request(
            self.repo_name, base=self.base_branch, head=branch, title=title, body=body
        )
        logger.info(f"Opened {url}")
        return url

    def _git(self, *args: str, cwd: Path | None = None, authenticated: bool = False) -> str:
        config = self._auth_config() if authenticated else []
        try:
            result = subprocess.run(
                ["git", *config, *args],
                cwd=cwd or self.repo_path,
                check=True,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise PublishError("git is not installed") from e
        except subprocess.CalledProcessError as e:
            raise PublishError(
                f"git {args[0]} failed",
                {"returncode": e.returncode, "stderr": (e.stderr or "").strip()[:500]},
            ) from e
        return result.stdout
