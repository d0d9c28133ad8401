"""Plugin alias definitions.

Logstash keeps a central alias registry (`AliasRegistry.yml`) mapping each
plugin type to the aliases it supports:

    input:
      - alias: elastic_agent
        from: beats
        docs:
          - replace: ":plugin: beats"
            with: ":plugin: elastic_agent"

The documentation pipelines cannot tell which plugins to duplicate under
another name without it, so failing to load it is fatal.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any

import httpx
import yaml
from pydantic import ValidationError

from docket.constants import ALIAS_DEFINITIONS_URL
from docket.exceptions import AliasDefinitionsError
from docket.github import GitHubClient
from docket.logging import get_logger
from docket.models import AliasDefinition

logger = get_logger(__name__)


class AliasTable:
    """Alias definitions indexed by plugin type, in declaration order."""

    def __init__(self, definitions_by_type: Mapping[str, Sequence[AliasDefinition]]) -> None:
        self._by_type = {type: tuple(defs) for type, defs in definitions_by_type.items()}

    @classmethod
    def empty(cls) -> AliasTable:
        return cls({})

    @classmethod
    def from_document(cls, document: Any) -> AliasTable:
        """Validate a parsed alias registry document.

        Raises:
            AliasDefinitionsError: If the document is empty or malformed.
        """
        if not document:
            raise AliasDefinitionsError("empty alias definitions")
        if not isinstance(document, dict):
            raise AliasDefinitionsError("alias definitions must map plugin types to lists")

        try:
            return cls(
                {
                    type: [AliasDefinition.model_validate(entry) for entry in entries or []]
                    for type, entries in document.items()
                }
            )
        except (ValidationError, TypeError) as e:
            raise AliasDefinitionsError("invalid alias definitions", {"error": str(e)}) from e

    def find(self, type: str, name: str) -> AliasDefinition | None:
        """The first alias declared for the plugin `(type, name)`, if any."""
        for definition in self._by_type.get(type, ()):
            if definition.from_ == name:
                return definition
        return None

    def items(self) -> Iterator[tuple[str, AliasDefinition]]:
        """Every `(type, definition)` pair in declaration order."""
        for type, definitions in self._by_type.items():
            for definition in definitions:
                yield type, definition

    def __len__(self) -> int:
        return sum(len(definitions) for definitions in self._by_type.values())


class AliasDefinitionsLoader:
    """Fetches the alias registry document."""

    def __init__(
        self,
        url: str = ALIAS_DEFINITIONS_URL,
        client: GitHubClient | None = None,
    ) -> None:
        self.url = url
        self._client = client or GitHubClient()

    def load(self) -> AliasTable:
        """Fetch and parse the alias registry.

        Raises:
            AliasDefinitionsError: If the document cannot be fetched, parsed,
                or is empty.
        """
        logger.info(f"Loading plugin alias definitions from {self.url}")
        try:
            document = yaml.safe_load(self._client.get_text(self.url))
        except httpx.HTTPError as e:
            raise AliasDefinitionsError(
                "alias definitions unavailable", {"url": self.url, "error": str(e)}
            ) from e
        except yaml.YAMLError as e:
            raise AliasDefinitionsError(
                "alias definitions are not valid YAML", {"url": self.url, "error": str(e)}
            ) from e

        table = AliasTable.from_document(document)
        logger.info(f"Loaded {len(table)} plugin alias definitions")
        return table
