"""GitHub-hosted plugin sources.

Example:
    source = GitHubSource("logstash-plugins/logstash-input-beats", client=client)
    source.read_file("docs/index.asciidoc", "9.0.0")
    source.web_url("CHANGELOG.md", "9.0.0")
    # https://github.com/logstash-plugins/logstash-input-beats/blob/v9.0.0/CHANGELOG.md
"""

from __future__ import annotations

import re
from typing import ClassVar

from docket.constants import GITHUB_WEB_BASE, RELEASE_TAG_PATTERN
from docket.github import GitHubClient
from docket.sources.base import Source
from docket.threadsafe import Deferral

_RELEASE_TAG = re.compile(RELEASE_TAG_PATTERN)

# github.com/<org>/<repo> inside any URL form
_GITHUB_REPO_URL = re.compile(r"\bgithub\.com/(?P<org>[^/]+)/(?P<repo>[^/#?]+)")


class GitHubSource(Source):
    """The source of a public project hosted on GitHub.

    Attributes:
        org: Owning organization or user.
        repo: Repository name.
    """

    name: ClassVar[str] = "github"

    def __init__(
        self,
        repo: str,
        org: str | None = None,
        *,
        client: GitHubClient | None = None,
    ) -> None:
        """Initialize the source.

        Args:
            repo: Repository name, or "org/repo" when org is omitted.
            org: Owning organization.
            client: GitHub client; tag listing needs an authenticated one.

        Raises:
            ValueError: If org is omitted and repo is not "org/repo".
        """
        if org is None:
            org, _, repo = repo.partition("/")
            if not org or not repo:
                raise ValueError(f"incomplete repository name: `{org}/{repo}`")

        self.org = org
        self.repo = repo
        self._client = client or GitHubClient()
        self._release_tags: Deferral[frozenset[str]] = Deferral(self._fetch_release_tags)

    @classmethod
    def from_url(cls, url: str, *, client: GitHubClient | None = None) -> GitHubSource | None:
        """Build a source from a github.com URL, or None for other hosts."""
        match = _GITHUB_REPO_URL.search(url)
        if match is None:
            return None
        repo = match.group("repo").removesuffix(".git")
        return cls(repo, match.group("org"), client=client)

    @property
    def full_name(self) -> str:
        return f"{self.org}/{self.repo}"

    @property
    def desc(self) -> str:
        return f"[github:{self.full_name}]"

    def read_file(self, path: str, version: str | None = None) -> str | None:
        return self._client.read_raw(self.org, self.repo, self.ref(version), path)

    def web_url(self, path: str, version: str | None = None) -> str:
        return f"{GITHUB_WEB_BASE}/{self.full_name}/blob/{self.ref(version)}/{path}"

    def release_tags(self) -> frozenset[str]:
        """Release tags of the repository, listed once through the API.

        Raises:
            SourceError: If the client is not authenticated.
        """
        return self._release_tags.get()

    def _fetch_release_tags(self) -> frozenset[str]:
        tags = self._client.list_tags(self.full_name)
        return frozenset(tag for tag in tags if _RELEASE_TAG.match(tag))

    def __repr__(self) -> str:
        return f"GitHubSource({self.full_name!r})"
