"""Base interface for documentable plugins.

A Plugin represents one versioned, documentable Logstash plugin. There are
three implementations:

- ArtifactPlugin: a plugin published directly as a gem on rubygems.org.
  "integration" artifacts bundle several other plugins.
- EmbeddedPlugin: a plugin packaged inside an integration ArtifactPlugin,
  with no release of its own.
- AliasPlugin: another name for an Artifact or Embedded plugin, whose docs
  are the target's docs with a few header rewrites.

Every plugin is identified by `(type, name)`, and its canonical name is
`logstash-<type>-<name>`. Traversal helpers expand one top-level release into
every unit that needs a document:

    release.with_wrapped_plugins(alias_table)
    # the release, each embedded plugin, and an alias for any of them
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from datetime import datetime
from typing import TYPE_CHECKING, ClassVar

from docket.constants import PLUGIN_PREFIX
from docket.exceptions import UnsupportedPluginTypeError

if TYPE_CHECKING:
    from docket.aliases import AliasTable


def canonical_name_for(type: str, name: str) -> str:
    return f"{PLUGIN_PREFIX}-{type}-{name}"


class Plugin(ABC):
    """Abstract base class for documentable plugins.

    Class Attributes:
        SUPPORTED_TYPES: Plugin types this variant may have.

    Attributes:
        type: Plugin type (input, output, filter, codec, integration).
        name: Plugin name within its type.
        canonical_name: Full `logstash-<type>-<name>` identifier.
    """

    SUPPORTED_TYPES: ClassVar[frozenset[str]]

    def __init__(self, type: str, name: str) -> None:
        self.type = type
        self.name = name
        self.canonical_name = canonical_name_for(type, name)

        if type not in self.SUPPORTED_TYPES:
            raise UnsupportedPluginTypeError(
                f"plugin type `{type}` not supported by {self.__class__.__name__}",
                {"plugin": self.canonical_name},
            )

    @property
    @abstractmethod
    def version(self) -> str | None:
        """The release version, or None for the floating branch."""
        ...

    @property
    @abstractmethod
    def release_date(self) -> datetime | None:
        """When the release was published, or None if unreleased."""
        ...

    @property
    @abstractmethod
    def changelog_url(self) -> str:
        """Public URL of the changelog at this release."""
        ...

    @property
    @abstractmethod
    def tag(self) -> str:
        """The source ref of the release: `v<version>` or `main`."""
        ...

    @abstractmethod
    def documentation(self) -> str | None:
        """Fetch the raw asciidoc documentation, or None if there is none."""
        ...

    @property
    @abstractmethod
    def desc(self) -> str:
        """A string describing this plugin in log messages."""
        ...

    def with_embedded_plugins(self) -> Iterator[Plugin]:
        """Yield this plugin, then any plugins embedded in it."""
        yield self

    def with_alias(self, alias_table: AliasTable) -> Iterator[Plugin]:
        """Yield this plugin, then its alias if the table declares one."""
        from docket.plugins.alias import AliasPlugin

        yield self

        definition = alias_table.find(self.type, self.name)
        if definition is not None:
            yield AliasPlugin(self, definition)

    def with_wrapped_plugins(self, alias_table: AliasTable) -> Iterator[Plugin]:
        """Yield every documentable unit derived from this plugin.

        Embedded plugins come right after their integration, and each
        plugin is immediately followed by its alias, if any.
        """
        for plugin in self.with_embedded_plugins():
            yield from plugin.with_alias(alias_table)

    def _identity(self) -> tuple[object, ...]:
        return (type(self), self.type, self.name, self.version)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Plugin):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.desc})"
