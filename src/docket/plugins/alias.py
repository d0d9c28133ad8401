"""Renamed views over another plugin."""

from __future__ import annotations

from datetime import datetime
from functools import cached_property
from typing import ClassVar

from docket.constants import EMBEDDABLE_PLUGIN_TYPES
from docket.models import AliasDefinition, DocRewrite
from docket.plugins.base import Plugin


class AliasPlugin(Plugin):
    """A plugin known under another name.

    Type and release metadata come from the canonical plugin; the name is
    the alias. Two aliases with the same name are equal whatever they wrap.

    Attributes:
        canonical_plugin: The Artifact or Embedded plugin being aliased.
        rewrites: Substitutions applied, in order, to the canonical docs.
    """

    SUPPORTED_TYPES: ClassVar[frozenset[str]] = EMBEDDABLE_PLUGIN_TYPES

    def __init__(self, canonical_plugin: Plugin, definition: AliasDefinition) -> None:
        if isinstance(canonical_plugin, AliasPlugin):
            raise TypeError("an alias cannot wrap another alias")

        super().__init__(canonical_plugin.type, definition.alias)
        self.canonical_plugin = canonical_plugin
        self.rewrites: tuple[DocRewrite, ...] = definition.docs

    @property
    def version(self) -> str | None:
        return self.canonical_plugin.version

    @property
    def release_date(self) -> datetime | None:
        return self.canonical_plugin.release_date

    @property
    def changelog_url(self) -> str:
        return self.canonical_plugin.changelog_url

    @property
    def tag(self) -> str:
        return self.canonical_plugin.tag

    @cached_property
    def desc(self) -> str:
        return f"[alias:{self.canonical_name}->{self.canonical_plugin.canonical_name}@{self.tag}]"

    def documentation(self) -> str | None:
        content = self.canonical_plugin.documentation()
        if content is None:
            return None

        for rewrite in self.rewrites:
            content = rewrite.apply(content)
        return content
