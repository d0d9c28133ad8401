"""Plugin domain model.

Plugin Variants:
    - ArtifactPlugin: a gem release (standalone or integration)
    - EmbeddedPlugin: a plugin bundled inside an integration
    - AliasPlugin: a renamed view over one of the above

Example:
    from docket.plugins import ArtifactPlugin

    plugin = repository.released_plugin("9.0.0")
    for unit in plugin.with_wrapped_plugins(alias_table):
        print(unit.desc)
"""

from docket.plugins.alias import AliasPlugin
from docket.plugins.artifact import ArtifactPlugin, parse_plugin_name
from docket.plugins.base import Plugin, canonical_name_for
from docket.plugins.embedded import EmbeddedPlugin

__all__ = [
    "AliasPlugin",
    "ArtifactPlugin",
    "EmbeddedPlugin",
    "Plugin",
    "canonical_name_for",
    "parse_plugin_name",
]
