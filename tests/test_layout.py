"""Tests for the documentation layout and index templates."""

from __future__ import annotations

from pathlib import Path

import pytest

from docket.layout import DocsLayout


@pytest.fixture
def layout(tmp_path: Path) -> DocsLayout:
    """Create a layout below a temporary directory."""
    return DocsLayout(tmp_path)


class TestDocsLayout:
    """Tests for DocsLayout."""

    def test_paths(self, layout: DocsLayout, tmp_path: Path) -> None:
        """Test where each kind of document lives."""
        assert layout.plugin_doc_path("input", "beats") == (
            tmp_path / "docs/plugins/inputs/beats.asciidoc"
        )
        assert layout.versioned_doc_path("input", "beats", "v9.0.0") == (
            tmp_path / "docs/versioned-plugins/inputs/beats-v9.0.0.asciidoc"
        )
        assert layout.versions_index_path("input", "beats") == (
            tmp_path / "docs/versioned-plugins/inputs/beats-index.asciidoc"
        )
        assert layout.type_index_path("input") == (
            tmp_path / "docs/versioned-plugins/inputs-index.asciidoc"
        )

    def test_write_creates_directories(self, layout: DocsLayout) -> None:
        """Test that writing creates missing parent directories."""
        path = layout.write(layout.plugin_doc_path("codec", "plain"), "content")

        assert path.read_text() == "content"

    def test_versions_index(self, layout: DocsLayout) -> None:
        """Test the release index of a plugin."""
        path = layout.write_versions_index(
            "input", "beats", [("v9.0.0", "2025-01-15"), ("v7.0.0", "2024-09-20")]
        )

        content = path.read_text()
        assert content.startswith(":plugin: beats\n:type: input\n")
        assert "| <<input-beats-v9.0.0,v9.0.0>> | 2025-01-15\n" in content
        assert content.index("v9.0.0") < content.index("v7.0.0")
        assert "include::beats-v7.0.0.asciidoc[]\n" in content
        assert "include::{include_path}/version-list-intro.asciidoc[]" in content
        assert layout.versions_index_exists("input", "beats")

    def test_type_index(self, layout: DocsLayout) -> None:
        """Test the plugin index of a type."""
        path = layout.write_type_index("filter", ["grok", "mutate"])

        content = path.read_text()
        assert ":type_uc: Filter\n" in content
        assert "include::filters/grok-index.asciidoc[]\n" in content
        assert "include::filters/mutate-index.asciidoc[]\n" in content

    def test_alias_index(self, layout: DocsLayout) -> None:
        """Test the index page of an alias."""
        path = layout.write_alias_index("input", "elastic_agent", "beats")

        assert path == layout.versions_index_path("input", "elastic_agent")
        content = path.read_text()
        assert ":plugin: elastic_agent\n" in content
        assert "<<input-beats-index,beats input plugin>>" in content

    def test_placeholder(self, layout: DocsLayout) -> None:
        """Test that a placeholder is an empty release index."""
        path = layout.write_placeholder("integration", "aws")

        content = path.read_text()
        assert path == layout.versions_index_path("integration", "aws")
        assert ":plugin: aws\n:type: integration\n" in content
        assert "include::aws-" not in content
