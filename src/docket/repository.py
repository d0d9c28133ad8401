"""Repositories: a gem's source tree together with its release history.

A Repository binds a gem name to a Source (for file contents and tags) and
to its rubygems.org metadata (for releases). It hands out one ArtifactPlugin
per requested version and always the same one, so work memoized on a
plugin, such as the embedded plugins of an integration, is done once.

Repositories are created through the factories only:

    repository = Repository.from_rubygems(
        "logstash-input-beats",
        source_resolver=lambda gem_data: GitHubSource(...),
    )
    repository = Repository.from_source("logstash-input-beats", source)
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime
from functools import cached_property
from typing import Any

from docket.logging import get_logger
from docket.plugins.artifact import ArtifactPlugin
from docket.rubygems import GemData, RubygemInfo, RubygemsClient
from docket.sources.base import Source
from docket.threadsafe import Deferral, ThreadsafeIndex

logger = get_logger(__name__)

SourceResolver = Callable[[GemData], Source]

# Guards __init__ so that repositories only come from the factories
_FACTORY = object()


class Repository:
    """The complete source and release history of a published gem.

    Attributes:
        name: Gem name as registered on rubygems.org.
        source: Where the gem's files and tags are read from.
    """

    @classmethod
    def from_rubygems(
        cls,
        gem_name: str,
        version: str | None = None,
        *,
        source_resolver: SourceResolver,
        client: RubygemsClient | None = None,
    ) -> Repository | None:
        """Create a repository from rubygems.org metadata.

        Args:
            gem_name: Name of the gem on rubygems.org.
            version: Release to resolve; defaults to the latest.
            source_resolver: Given the release's gem data, returns the Source
                of the gem (e.g., from its `source_code_uri`).
            client: rubygems.org client.

        Returns:
            The repository, or None if the gem or release is not published.
        """
        rubygem_info = RubygemInfo(gem_name, client or RubygemsClient())

        version = version or rubygem_info.latest()
        if version is None:
            logger.error(f"[gem:{gem_name}]: release metadata unavailable from rubygems.org")
            return None

        gem_data = rubygem_info.for_version(version)
        if gem_data is None:
            logger.error(f"[gem:{gem_name}]: release `{version}` not published to rubygems.org")
            return None

        source = source_resolver(gem_data)
        return cls(gem_name, source, Deferral.of(rubygem_info), _token=_FACTORY)

    @classmethod
    def from_source(
        cls,
        name: str,
        source: Source,
        *,
        client: RubygemsClient | None = None,
    ) -> Repository:
        """Create a repository for a known source.

        Release metadata is only fetched when first needed.
        """
        rubygems = client or RubygemsClient()
        info = Deferral(lambda: RubygemInfo(name, rubygems))
        return cls(name, source, info, _token=_FACTORY)

    def __init__(
        self,
        name: str,
        source: Source,
        rubygem_info: Deferral[RubygemInfo],
        *,
        _token: Any = None,
    ) -> None:
        if _token is not _FACTORY:
            raise TypeError("use Repository.from_rubygems() or Repository.from_source()")

        self.name = name
        self.source = source
        self._rubygem_info = rubygem_info
        self._plugin_versions: ThreadsafeIndex[str | None, ArtifactPlugin] = ThreadsafeIndex(
            lambda version: ArtifactPlugin(self, version)
        )

    @cached_property
    def desc(self) -> str:
        return f"[repository:{self.name}]"

    @property
    def rubygem_info(self) -> RubygemInfo:
        return self._rubygem_info.get()

    def released_plugin(self, version: str | None) -> ArtifactPlugin:
        """The plugin for a release, created on first request.

        Args:
            version: Release version. None gives the floating plugin that
                reads `main` with the latest release's metadata.

        Returns:
            The same ArtifactPlugin instance for every call with this version.
        """
        return self._plugin_versions.fetch(version)

    def released_plugins(self, include_prerelease: bool = False) -> Iterator[ArtifactPlugin]:
        """Plugins for every release on rubygems.org, newest first."""
        info = self.rubygem_info
        for version in info.versions():
            if not include_prerelease and info.is_prerelease(version):
                continue
            yield self.released_plugin(version)

    def source_tagged_releases(
        self, include_prerelease: bool = False
    ) -> Iterator[ArtifactPlugin]:
        """Released plugins that also have a release tag in the source."""
        tags = self.source.release_tags()
        for plugin in self.released_plugins(include_prerelease):
            if plugin.tag in tags:
                yield plugin

    def last_release(self) -> ArtifactPlugin | None:
        """The newest release, or None if the gem has no releases."""
        latest = self.rubygem_info.latest()
        return self.released_plugin(latest) if latest else None

    def last_release_date(self) -> datetime | None:
        """The newest release's date, without creating a plugin."""
        return self.release_date(self.rubygem_info.latest())

    def release_date(self, version: str | None) -> datetime | None:
        if version is None:
            return None
        return self.rubygem_info.release_date(version)

    def read_file(self, path: str, version: str | None = None) -> str | None:
        return self.source.read_file(path, version)

    def web_url(self, path: str, version: str | None = None) -> str:
        return self.source.web_url(path, version)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Repository):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"Repository({self.name!r})"
