"""Versioned sources for plugin documentation.

    - Source: interface for reading files, linking to them and listing tags
    - GitHubSource: GitHub-hosted plugins
"""

from docket.sources.base import Source
from docket.sources.github_source import GitHubSource

__all__ = [
    "GitHubSource",
    "Source",
]
