"""Pydantic models for logstash-docket.

This module contains the data models exchanged between the pipelines and
their collaborators. All models use Pydantic BaseModel with Field()
descriptions for documentation and validation.

Models are organized by domain:
- Alias models (DocRewrite, AliasDefinition)
- Plugin report models (PluginReportEntry, PluginReport)
- Run models (RunOptions, DocOutcome, RunReport)

Registry metadata is intentionally kept as the raw JSON dicts returned by
rubygems.org; only the fields the tool reads are interpreted.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Required at runtime for Pydantic
from enum import Enum
from pathlib import Path  # noqa: TC003 - Required at runtime for Pydantic

from pydantic import BaseModel, ConfigDict, Field

from docket.constants import DEFAULT_PARALLELISM, DEFAULT_PLUGIN_REGEX, DEFAULT_PLUGIN_SOURCE

# =============================================================================
# ALIAS MODELS
# =============================================================================


class DocRewrite(BaseModel):
    """A literal text substitution applied to an aliased plugin's docs."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    replace: str = Field(..., description="Text to look for in the canonical docs")
    with_: str = Field(..., alias="with", description="Replacement text")

    def apply(self, content: str) -> str:
        return content.replace(self.replace, self.with_)


class AliasDefinition(BaseModel):
    """An alias entry from the central alias registry."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    alias: str = Field(..., description="Name the plugin is also known by")
    from_: str = Field(..., alias="from", description="Name of the target plugin")
    docs: tuple[DocRewrite, ...] = Field(
        default=(),
        description="Header rewrites applied to the target's docs, in order",
    )


# =============================================================================
# PLUGIN REPORT MODELS
# =============================================================================


class PluginReportEntry(BaseModel):
    """One plugin as listed in a Logstash distribution's plugin report."""

    model_config = ConfigDict(populate_by_name=True)

    version: str | None = Field(default=None, description="Bundled gem version")
    from_: str | None = Field(default=None, alias="from", description="Where it was bundled from")

    @property
    def is_default(self) -> bool:
        return self.from_ == DEFAULT_PLUGIN_SOURCE


class PluginReport(BaseModel):
    """The plugins report produced by a Logstash build.

    Only the `successful` section is read: plugin name -> bundled details.
    """

    successful: dict[str, PluginReportEntry] = Field(default_factory=dict)


# =============================================================================
# RUN MODELS
# =============================================================================


class RunOptions(BaseModel):
    """Flags controlling a single documentation run."""

    output_path: Path = Field(..., description="Directory documentation is written below")
    parallelism: int = Field(default=DEFAULT_PARALLELISM, ge=1, description="Worker threads")
    use_main: bool = Field(default=False, description="Read docs from main, not the release tag")
    skip_existing: bool = Field(
        default=False,
        description="Skip writing when the existing document declares the same version",
    )
    latest_only: bool = Field(default=False, description="Only document the latest release")
    dry_run: bool = Field(default=False, description="Do not commit or open a pull request")
    plugin_regex: str = Field(
        default=DEFAULT_PLUGIN_REGEX,
        description="Only repositories matching this pattern are documented",
    )
    since: datetime | None = Field(
        default=None,
        description="Only rebuild repositories released after this time",
    )


class DocOutcome(str, Enum):
    """What happened to a single documentable plugin."""

    WRITTEN = "written"
    SKIPPED_NO_DOC = "skipped_no_doc"
    SKIPPED_UNCHANGED = "skipped_unchanged"
    SKIPPED_ALREADY_PROCESSED = "skipped_already_processed"


class RunReport(BaseModel):
    """Summary of a documentation run."""

    written: list[Path] = Field(default_factory=list, description="Documents written")
    skipped: dict[str, str] = Field(
        default_factory=dict,
        description="Canonical name -> reason, for plugins or repositories skipped",
    )
    names_by_type: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Plugin names seen per type, sorted",
    )

    @property
    def has_changes(self) -> bool:
        return bool(self.written)
