"""Plugins packaged inside an integration plugin."""

from __future__ import annotations

from datetime import datetime
from functools import cached_property
from typing import TYPE_CHECKING, ClassVar

from docket.constants import EMBEDDABLE_PLUGIN_TYPES, EMBEDDED_DOC_PATH_FORMAT
from docket.plugins.base import Plugin

if TYPE_CHECKING:
    from docket.plugins.artifact import ArtifactPlugin


class EmbeddedPlugin(Plugin):
    """A plugin that only exists inside an integration ArtifactPlugin.

    Release metadata is the owning artifact's; documentation lives at
    `docs/<type>-<name>.asciidoc` in the owner's source tree.

    Attributes:
        artifact_plugin: The integration plugin that embeds this one.
    """

    SUPPORTED_TYPES: ClassVar[frozenset[str]] = EMBEDDABLE_PLUGIN_TYPES

    def __init__(self, artifact_plugin: ArtifactPlugin, type: str, name: str) -> None:
        super().__init__(type, name)
        self.artifact_plugin = artifact_plugin

    @property
    def version(self) -> str | None:
        return self.artifact_plugin.version

    @property
    def release_date(self) -> datetime | None:
        return self.artifact_plugin.release_date

    @property
    def changelog_url(self) -> str:
        return self.artifact_plugin.changelog_url

    @property
    def tag(self) -> str:
        return self.artifact_plugin.tag

    @cached_property
    def desc(self) -> str:
        return f"[plugin:{self.artifact_plugin.canonical_name}/{self.canonical_name}@{self.tag}]"

    def documentation(self) -> str | None:
        path = EMBEDDED_DOC_PATH_FORMAT.format(type=self.type, name=self.name)
        return self.artifact_plugin.repository.read_file(path, self.version)

    def _identity(self) -> tuple[object, ...]:
        return (*super()._identity(), self.artifact_plugin)
