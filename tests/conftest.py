"""Shared fixtures and fakes for the docket tests."""

from __future__ import annotations

import threading
from collections import Counter
from typing import Any, ClassVar

import pytest

from docket.github import GitHubClient
from docket.rubygems import GemData, RubygemsClient
from docket.sources.base import Source

BEATS_DOC = """\
:plugin: beats
:type: input
:default_codec: plain

///////////////////////////////////////////
START - GENERATED VARIABLES, DO NOT EDIT!
///////////////////////////////////////////
:version: %VERSION%
:release_date: %RELEASE_DATE%
:changelog_url: %CHANGELOG_URL%
///////////////////////////////////////////
END - GENERATED VARIABLES, DO NOT EDIT!
///////////////////////////////////////////

[id="plugins-{type}s-{plugin}"]

=== Beats input plugin

Receives events from the Elastic Beats framework.
See <<plugins-{type}s-{plugin}-options>> and <<plugins-{type}s-common-options>>.
"""

ALIAS_REGISTRY = """\
input:
  - alias: elastic_agent
    from: beats
    docs:
      - replace: ":plugin: beats"
        with: ":plugin: elastic_agent"
      - replace: "=== Beats input plugin"
        with: "=== Elastic Agent input plugin"
"""


def gem(number: str, created_at: str = "2025-01-15T10:00:00.000Z", **metadata: str) -> GemData:
    """Build a rubygems.org version entry."""
    return {
        "number": number,
        "created_at": created_at,
        "prerelease": any(c.isalpha() for c in number),
        "metadata": metadata,
    }


class FakeRubygemsClient(RubygemsClient):
    """Serves release lists from memory and counts fetches per gem."""

    def __init__(self, releases: dict[str, list[GemData]] | None = None) -> None:
        super().__init__()
        self.releases = releases or {}
        self.calls: Counter[str] = Counter()
        self._lock = threading.Lock()

    def fetch_versions(self, gem_name: str) -> list[GemData] | None:
        with self._lock:
            self.calls[gem_name] += 1
        return self.releases.get(gem_name)


class FakeGitHubClient(GitHubClient):
    """Serves files, tags and documents from memory.

    Files are keyed by `("org/repo", ref, path)`.
    """

    def __init__(
        self,
        files: dict[tuple[str, str, str], str] | None = None,
        tags: dict[str, list[str]] | None = None,
        documents: dict[str, str] | None = None,
        org_repos: dict[str, list[str]] | None = None,
    ) -> None:
        super().__init__(token="test-token")
        self.files = files or {}
        self.tags = tags or {}
        self.documents = documents or {}
        self.org_repos = org_repos or {}
        self.reads: list[tuple[str, str, str]] = []
        self._lock = threading.Lock()

    def read_raw(self, org: str, repo: str, ref: str, path: str) -> str | None:
        key = (f"{org}/{repo}", ref, path)
        with self._lock:
            self.reads.append(key)
        return self.files.get(key)

    def get_text(self, url: str) -> str:
        return self.documents[url]

    def list_tags(self, full_name: str) -> list[str]:
        return self.tags.get(full_name, [])

    def list_org_repos(self, org: str) -> list[str]:
        return self.org_repos.get(org, [])

    def rate_limit(self) -> tuple[int, int]:
        return 4999, 5000


class FakeSource(Source):
    """An in-memory Source keyed by `(ref, path)`."""

    name: ClassVar[str] = "fake"

    def __init__(
        self,
        files: dict[tuple[str, str], str] | None = None,
        tags: set[str] | None = None,
    ) -> None:
        self.files = files or {}
        self.tags = frozenset(tags or ())
        self.tag_listings = 0

    @property
    def desc(self) -> str:
        return "[fake]"

    def read_file(self, path: str, version: str | None = None) -> str | None:
        return self.files.get((self.ref(version), path))

    def web_url(self, path: str, version: str | None = None) -> str:
        return f"https://example.test/{self.ref(version)}/{path}"

    def release_tags(self) -> frozenset[str]:
        self.tag_listings += 1
        return self.tags


@pytest.fixture
def beats_releases() -> dict[str, list[GemData]]:
    """Three releases of the beats input, oldest listed first."""
    return {
        "logstash-input-beats": [
            gem("6.9.1", "2024-05-01T00:00:00.000Z"),
            gem("9.0.0", "2025-01-15T10:00:00.000Z"),
            gem("7.0.0", "2024-09-20T00:00:00.000Z"),
        ]
    }


@pytest.fixture
def rubygems_client(beats_releases: dict[str, Any]) -> FakeRubygemsClient:
    """Create a fake registry client serving the beats releases."""
    return FakeRubygemsClient(beats_releases)
