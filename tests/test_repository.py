"""Tests for Repository."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import FakeRubygemsClient, FakeSource, gem
from docket.repository import Repository
from docket.rubygems import GemData
from docket.sources.base import Source


@pytest.fixture
def source() -> FakeSource:
    """A source tagging two of the three beats releases."""
    return FakeSource(tags={"v9.0.0", "v6.9.1"})


@pytest.fixture
def repository(source: FakeSource, rubygems_client: FakeRubygemsClient) -> Repository:
    """The beats repository."""
    return Repository.from_source("logstash-input-beats", source, client=rubygems_client)


class TestRepositoryFactories:
    """Tests for creating repositories."""

    def test_constructor_is_private(self, source: FakeSource) -> None:
        """Test that repositories only come from the factories."""
        with pytest.raises(TypeError):
            Repository("logstash-input-beats", source, None)  # type: ignore[arg-type]

    def test_from_source_is_lazy(
        self, source: FakeSource, rubygems_client: FakeRubygemsClient
    ) -> None:
        """Test that no registry request happens until metadata is needed."""
        repository = Repository.from_source("logstash-input-beats", source, client=rubygems_client)

        assert rubygems_client.calls["logstash-input-beats"] == 0
        repository.last_release()
        assert rubygems_client.calls["logstash-input-beats"] == 1

    def test_from_rubygems_latest(self, rubygems_client: FakeRubygemsClient) -> None:
        """Test resolving the latest release and its source."""
        seen: list[GemData] = []

        def resolver(gem_data: GemData) -> Source:
            seen.append(gem_data)
            return FakeSource()

        repository = Repository.from_rubygems(
            "logstash-input-beats", source_resolver=resolver, client=rubygems_client
        )

        assert repository is not None
        assert repository.name == "logstash-input-beats"
        assert [g["number"] for g in seen] == ["9.0.0"]

    def test_from_rubygems_pinned_version(self, rubygems_client: FakeRubygemsClient) -> None:
        """Test that the resolver sees the requested release."""
        seen: list[GemData] = []

        def resolver(gem_data: GemData) -> Source:
            seen.append(gem_data)
            return FakeSource()

        Repository.from_rubygems(
            "logstash-input-beats", "7.0.0", source_resolver=resolver, client=rubygems_client
        )

        assert seen[0]["number"] == "7.0.0"

    def test_from_rubygems_unknown_version(self, rubygems_client: FakeRubygemsClient) -> None:
        """Test that an unpublished release yields no repository."""
        repository = Repository.from_rubygems(
            "logstash-input-beats",
            "1.0.0",
            source_resolver=lambda _: FakeSource(),
            client=rubygems_client,
        )

        assert repository is None

    def test_from_rubygems_unknown_gem(self) -> None:
        """Test that an unpublished gem yields no repository."""
        repository = Repository.from_rubygems(
            "logstash-input-missing",
            source_resolver=lambda _: FakeSource(),
            client=FakeRubygemsClient(),
        )

        assert repository is None

    def test_registry_fetched_once(self, rubygems_client: FakeRubygemsClient) -> None:
        """Test that the factory's registry lookup is reused afterwards."""
        repository = Repository.from_rubygems(
            "logstash-input-beats",
            source_resolver=lambda _: FakeSource(),
            client=rubygems_client,
        )

        assert repository is not None
        list(repository.released_plugins())
        repository.last_release_date()
        assert rubygems_client.calls["logstash-input-beats"] == 1


class TestRepositoryReleases:
    """Tests for release traversal."""

    def test_released_plugin_is_memoized(self, repository: Repository) -> None:
        """Test that every request for a version returns the same plugin."""
        with ThreadPoolExecutor(max_workers=8) as pool:
            plugins = list(pool.map(lambda _: repository.released_plugin("9.0.0"), range(20)))

        assert all(plugin is plugins[0] for plugin in plugins)
        assert repository.released_plugin(None) is repository.released_plugin(None)
        assert repository.released_plugin(None) is not plugins[0]

    def test_released_plugins_newest_first(self, repository: Repository) -> None:
        """Test iterating every release."""
        assert [p.version for p in repository.released_plugins()] == ["9.0.0", "7.0.0", "6.9.1"]

    def test_released_plugins_excludes_prereleases(self, source: FakeSource) -> None:
        """Test that prereleases are only listed on request."""
        client = FakeRubygemsClient(
            {"logstash-input-beats": [gem("9.1.0.beta1"), gem("9.0.0")]}
        )
        repository = Repository.from_source("logstash-input-beats", source, client=client)

        assert [p.version for p in repository.released_plugins()] == ["9.0.0"]
        assert [p.version for p in repository.released_plugins(include_prerelease=True)] == [
            "9.1.0.beta1",
            "9.0.0",
        ]

    def test_source_tagged_releases(self, repository: Repository, source: FakeSource) -> None:
        """Test that only tagged releases are listed, tags read once."""
        assert [p.version for p in repository.source_tagged_releases()] == ["9.0.0", "6.9.1"]
        assert source.tag_listings == 1

    def test_last_release(self, repository: Repository) -> None:
        """Test the newest release and its date."""
        last = repository.last_release()

        assert last is not None
        assert last.version == "9.0.0"
        assert repository.last_release_date() == last.release_date

    def test_last_release_without_releases(self, source: FakeSource) -> None:
        """Test that a gem without releases has no last release."""
        repository = Repository.from_source(
            "logstash-input-beats", source, client=FakeRubygemsClient()
        )

        assert repository.last_release() is None
        assert repository.last_release_date() is None

    def test_file_access_delegates_to_source(self) -> None:
        """Test reading files and building links through the source."""
        source = FakeSource({("v9.0.0", "docs/index.asciidoc"): "docs"})
        repository = Repository.from_source(
            "logstash-input-beats", source, client=FakeRubygemsClient()
        )

        assert repository.read_file("docs/index.asciidoc", "9.0.0") == "docs"
        assert repository.web_url("CHANGELOG.md") == "https://example.test/main/CHANGELOG.md"

    def test_equality_by_name(self, repository: Repository, source: FakeSource) -> None:
        """Test that repositories are identified by name."""
        other = Repository.from_source(
            "logstash-input-beats", FakeSource(), client=FakeRubygemsClient()
        )

        assert repository == other
        assert hash(repository) == hash(other)
        assert repository.desc == "[repository:logstash-input-beats]"
