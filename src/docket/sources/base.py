"""Base interface for versioned plugin sources.

A Source gives access to a plugin's source tree at a release: reading files,
linking to them, and listing which releases were tagged. The domain model
only talks to this interface, so a plugin hosted somewhere other than GitHub
needs nothing more than another implementation.

Implementation Requirements:
    - read_file returns None for files that do not exist at the ref
    - web_url never performs I/O
    - release_tags is computed once per instance
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

from docket.constants import DEFAULT_BRANCH


class Source(ABC):
    """Abstract base class for versioned code hosts.

    Class Attributes:
        name: Identifier of the host (e.g., "github").
    """

    name: ClassVar[str]

    @staticmethod
    def ref(version: str | None) -> str:
        """The ref for a version: `v<version>`, or the floating branch."""
        return f"v{version}" if version else DEFAULT_BRANCH

    @abstractmethod
    def read_file(self, path: str, version: str | None = None) -> str | None:
        """Read the file at the given version.

        Args:
            path: Path of the file inside the source tree.
            version: Release version; None reads the floating branch.

        Returns:
            The file contents, or None if it does not exist at that ref.
        """
        ...

    @abstractmethod
    def web_url(self, path: str, version: str | None = None) -> str:
        """Public web URL for the file at the given version."""
        ...

    @abstractmethod
    def release_tags(self) -> frozenset[str]:
        """Names of the release tags (`vX.Y.Z`) in this source."""
        ...

    @property
    @abstractmethod
    def desc(self) -> str:
        """A short description suitable for log messages."""
        ...
