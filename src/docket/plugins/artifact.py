"""Plugins published directly as gems on rubygems.org."""

from __future__ import annotations

import re
from collections.abc import Iterator
from datetime import datetime
from functools import cached_property
from typing import TYPE_CHECKING, ClassVar

from docket.constants import (
    CHANGELOG_PATH,
    DEFAULT_BRANCH,
    DOC_INDEX_PATH,
    PLUGIN_PREFIX,
    PLUGIN_TYPES,
    TYPE_INTEGRATION,
)
from docket.exceptions import PluginNameError, RegistryError
from docket.plugins.base import Plugin
from docket.plugins.embedded import EmbeddedPlugin
from docket.threadsafe import Deferral

if TYPE_CHECKING:
    from docket.repository import Repository

PLUGIN_NAME_PATTERN = re.compile(
    rf"\A{PLUGIN_PREFIX}-(?P<type>[a-z]+)-(?P<name>\w+(?:-\w+)*)\Z"
)


def parse_plugin_name(canonical_name: str) -> tuple[str, str]:
    """Split `logstash-<type>-<name>` into its type and name.

    Raises:
        PluginNameError: If the name does not follow the pattern.
    """
    match = PLUGIN_NAME_PATTERN.match(canonical_name)
    if match is None:
        raise PluginNameError(f"invalid plugin name `{canonical_name}`")
    return match.group("type"), match.group("name")


class ArtifactPlugin(Plugin):
    """A plugin backed directly by a gem release.

    It can be a self-contained input, output, filter or codec, or a
    top-level "integration" plugin that embeds several others. A plugin
    without a version is the floating view: sources are read from `main`
    and gem metadata comes from the latest release.

    Attributes:
        repository: The repository the gem is released from.
    """

    SUPPORTED_TYPES: ClassVar[frozenset[str]] = PLUGIN_TYPES

    def __init__(self, repository: Repository, version: str | None) -> None:
        """Initialize the plugin. Performs no I/O.

        Raises:
            PluginNameError: If the repository name is not a plugin name.
            UnsupportedPluginTypeError: If the type is not a top-level type.
        """
        type, name = parse_plugin_name(repository.name)
        super().__init__(type, name)

        self.repository = repository
        self._version = str(version) if version is not None else None
        self._embedded_plugins: Deferral[tuple[EmbeddedPlugin, ...]] = Deferral(
            self._generate_embedded_plugins
        )

    @property
    def version(self) -> str | None:
        return self._version

    @property
    def release_date(self) -> datetime | None:
        return self.repository.release_date(self._version)

    @property
    def changelog_url(self) -> str:
        return self.repository.web_url(CHANGELOG_PATH, self._version)

    @property
    def tag(self) -> str:
        return f"v{self._version}" if self._version else DEFAULT_BRANCH

    @cached_property
    def desc(self) -> str:
        return f"[plugin:{self.canonical_name}@{self.tag}]"

    def documentation(self) -> str | None:
        return self.repository.read_file(DOC_INDEX_PATH, self._version)

    @property
    def embedded_plugins(self) -> tuple[EmbeddedPlugin, ...]:
        """Plugins bundled in this integration; empty for other types.

        Computed from gem metadata on first access, once per instance.
        """
        return self._embedded_plugins.get()

    def with_embedded_plugins(self) -> Iterator[Plugin]:
        yield self
        yield from self.embedded_plugins

    def _identity(self) -> tuple[object, ...]:
        return (*super()._identity(), self.repository)

    def _generate_embedded_plugins(self) -> tuple[EmbeddedPlugin, ...]:
        if self.type != TYPE_INTEGRATION:
            return ()

        info = self.repository.rubygem_info
        gem_version = self._version or info.latest()
        if gem_version is None:
            raise RegistryError(f"{self.desc}: no releases on rubygems")

        gem_data = info.for_version(gem_version)
        if gem_data is None:
            raise RegistryError(f"{self.desc}: no gem data available for {gem_version}")

        names_csv = (gem_data.get("metadata") or {}).get("integration_plugins")
        if not names_csv:
            return ()

        embedded = []
        for embedded_name in (n.strip() for n in names_csv.split(",")):
            if not embedded_name:
                continue
            type, name = parse_plugin_name(embedded_name)
            embedded.append(EmbeddedPlugin(self, type, name))
        return tuple(embedded)
