"""On-disk layout of the generated documentation.

    <root>/docs/plugins/<type>s/<name>.asciidoc                  current reference
    <root>/docs/versioned-plugins/<type>s/<name>-<tag>.asciidoc  one page per release
    <root>/docs/versioned-plugins/<type>s/<name>-index.asciidoc  releases of a plugin
    <root>/docs/versioned-plugins/<type>s-index.asciidoc         plugins of a type

Index pages are rendered from the jinja2 templates shipped in
`docket/templates`.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from jinja2 import Environment, PackageLoader, StrictUndefined

from docket.logging import get_logger

logger = get_logger(__name__)


def _template_environment() -> Environment:
    return Environment(
        loader=PackageLoader("docket", "templates"),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
        autoescape=False,
    )


class DocsLayout:
    """Paths and writers for documentation below a root directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self._templates = _template_environment()

    @property
    def plugins_dir(self) -> Path:
        return self.root / "docs" / "plugins"

    @property
    def versioned_dir(self) -> Path:
        return self.root / "docs" / "versioned-plugins"

    def plugin_doc_path(self, type: str, name: str) -> Path:
        return self.plugins_dir / f"{type}s" / f"{name}.asciidoc"

    def versioned_doc_path(self, type: str, name: str, tag: str) -> Path:
        return self.versioned_dir / f"{type}s" / f"{name}-{tag}.asciidoc"

    def versions_index_path(self, type: str, name: str) -> Path:
        return self.versioned_dir / f"{type}s" / f"{name}-index.asciidoc"

    def type_index_path(self, type: str) -> Path:
        return self.versioned_dir / f"{type}s-index.asciidoc"

    def versions_index_exists(self, type: str, name: str) -> bool:
        return self.versions_index_path(type, name).exists()

    def write(self, path: Path, content: str) -> Path:
        """Write a document, creating parent directories as needed."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def write_versions_index(
        self,
        type: str,
        name: str,
        versions: Sequence[tuple[str, str]],
    ) -> Path:
        """Write the index of a plugin's releases.

        Args:
            type: Plugin type.
            name: Plugin name.
            versions: `(tag, release date)` pairs, newest first.
        """
        content = self._render("plugin-index.asciidoc.j2", type=type, name=name, versions=versions)
        return self.write(self.versions_index_path(type, name), content)

    def write_type_index(self, type: str, plugins: Sequence[str]) -> Path:
        content = self._render("type-index.asciidoc.j2", type=type, plugins=plugins)
        return self.write(self.type_index_path(type), content)

    def write_alias_index(self, type: str, alias_name: str, target: str) -> Path:
        content = self._render(
            "alias-index.asciidoc.j2", type=type, alias_name=alias_name, target=target
        )
        return self.write(self.versions_index_path(type, alias_name), content)

    def write_placeholder(self, type: str, name: str) -> Path:
        """Write an empty versions index so links to a new plugin resolve."""
        return self.write_versions_index(type, name, [])

    def _render(self, template_name: str, **context: object) -> str:
        return self._templates.get_template(template_name).render(**context)
