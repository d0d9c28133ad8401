"""Documentation content transformations.

Plugin docs are asciidoc files with a few placeholders that are only known
at release time:

    :version: %VERSION%
    :release_date: %RELEASE_DATE%
    :changelog_url: %CHANGELOG_URL%

This module fills them in for the current plugin reference
(`render_plugin_doc`) and for the versioned plugin reference
(`render_versioned_doc`), where each release gets its own page and anchors
must be scoped by version so several releases can live in one book.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime

from pydantic import BaseModel, Field

from docket.constants import (
    PLACEHOLDER_BRANCH,
    PLACEHOLDER_CHANGELOG_URL,
    PLACEHOLDER_ECS_VERSION,
    PLACEHOLDER_RELEASE_DATE,
    PLACEHOLDER_VERSION,
    RELEASE_DATE_FORMAT,
    UNRELEASED,
)
from docket.plugins.base import Plugin

_TYPE_LINE = re.compile(r"^:type: .*$", re.MULTILINE)
_VERSION_LINE = re.compile(r"^:version: (.*?)$", re.MULTILINE)
_BRANCH_LINE = re.compile(r"^:branch: ", re.MULTILINE)
_PLUGIN_HEADER = re.compile(r"^=== .+? [Pp]lugin$", re.MULTILINE)

_INCLUDE_PATH_REWRITE = (
    ":include_path: ../../../../logstash/docs/include",
    ":include_path: ../include/6.x",
)


class StackVersions(BaseModel):
    """Elastic stack versions referenced by the versioned docs."""

    branch: str = Field(..., description="Logstash branch, major.minor")
    ecs_version: str = Field(..., description="ECS version, major.minor")


def format_release_date(release_date: datetime | None) -> str:
    """`YYYY-MM-DD`, or `unreleased` when there is no date."""
    return release_date.strftime(RELEASE_DATE_FORMAT) if release_date else UNRELEASED


def substitute_placeholders(
    content: str,
    *,
    tag: str,
    release_date: str,
    changelog_url: str,
) -> str:
    """Replace `%VERSION%`, `%RELEASE_DATE%` and `%CHANGELOG_URL%`."""
    return (
        content.replace(PLACEHOLDER_VERSION, tag)
        .replace(PLACEHOLDER_RELEASE_DATE, release_date)
        .replace(PLACEHOLDER_CHANGELOG_URL, changelog_url)
    )


def inject_variables(content: str, variables: Mapping[str, object]) -> str:
    """Insert `:key: value` attribute lines right after the `:type:` line.

    Content without a `:type:` line is returned unchanged.
    """
    if not variables:
        return content
    attributes = "\n".join(f":{key}: {value}" for key, value in variables.items())
    return _TYPE_LINE.sub(lambda m: f"{m.group(0)}\n{attributes}", content, count=1)


def declared_version(content: str) -> str | None:
    """The value of the `:version:` attribute, if declared."""
    match = _VERSION_LINE.search(content)
    return match.group(1) if match else None


def no_version_bump(existing: str, content: str) -> bool:
    """Whether both documents declare the same `:version:`.

    Regenerated docs sometimes differ cosmetically without a release; those
    changes are not worth a pull request.
    """
    return declared_version(existing) == declared_version(content)


def render_plugin_doc(content: str, plugin: Plugin, *, is_default_plugin: bool) -> str:
    """Render a document for the current plugin reference."""
    content = substitute_placeholders(
        content,
        tag=plugin.tag,
        release_date=format_release_date(plugin.release_date),
        changelog_url=plugin.changelog_url,
    )
    return inject_variables(content, {"default_plugin": 1 if is_default_plugin else 0})


def render_versioned_doc(content: str, plugin: Plugin, stack: StackVersions) -> str:
    """Render a document for one release in the versioned plugin reference."""
    type, name = plugin.type, plugin.name

    content = substitute_placeholders(
        content,
        tag=plugin.tag,
        release_date=format_release_date(plugin.release_date),
        changelog_url=plugin.changelog_url,
    ).replace(*_INCLUDE_PATH_REWRITE)

    content = _PLUGIN_HEADER.sub(lambda m: f"{m.group(0)} {{version}}", content, count=1)

    for old, new in (
        ('[id="plugins-', '[id="{version}-plugins-'),
        ("<<plugins-{type}s-common-options>>", "<<{version}-plugins-{type}s-{plugin}-common-options>>"),
        ("<<plugins-{type}-{plugin}", "<<plugins-{type}s-{plugin}"),
        ("<<plugins-{type}s-{plugin}", "<<{version}-plugins-{type}s-{plugin}"),
        (f"<<plugins-{type}s-{name}", f"<<{{version}}-plugins-{type}s-{name}"),
        ("[[dlq-policy]]", '[id="{version}-dlq-policy"]'),
        ("<<dlq-policy>>", "<<{version}-dlq-policy>>"),
    ):
        content = content.replace(old, new)

    return apply_stack_versions(content, stack)


def apply_stack_versions(content: str, stack: StackVersions) -> str:
    """Fill in `%BRANCH%` and `%ECS_VERSION%`.

    Older docs predate these attributes; they are added after the `:type:`
    line when the document does not declare a branch yet.
    """
    if _BRANCH_LINE.search(content) is None:
        content = inject_variables(
            content, {"branch": PLACEHOLDER_BRANCH, "ecs_version": PLACEHOLDER_ECS_VERSION}
        )
    return content.replace(PLACEHOLDER_BRANCH, stack.branch).replace(
        PLACEHOLDER_ECS_VERSION, stack.ecs_version
    )


def major_minor(version: str | None) -> str:
    """Reduce `8.15.3` to `8.15`.

    Raises:
        ValueError: If the version is missing or has fewer than two parts.
    """
    if not version:
        raise ValueError("stack version cannot be empty")
    parts = version.strip().split(".")
    if len(parts) < 2:
        raise ValueError(f"not a major.minor version: `{version}`")
    return f"{parts[0]}.{parts[1]}"


def parse_stack_versions(document: str) -> StackVersions:
    """Read `:version:` and `:ecs_version:` from a stack versions document."""
    branch = re.search(r"^:version:\s+(.*?)$", document, re.MULTILINE)
    ecs = re.search(r"^:ecs_version:\s+(.*?)$", document, re.MULTILINE)
    return StackVersions(
        branch=major_minor(branch.group(1) if branch else None),
        ecs_version=major_minor(ecs.group(1) if ecs else None),
    )
