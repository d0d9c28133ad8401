"""Constants and configuration defaults for logstash-docket.

This module contains all magic values, default configurations, and constants
used throughout the application. Import from here instead of hardcoding values.
"""

from typing import Final

# =============================================================================
# VERSION
# =============================================================================
VERSION: Final[str] = "0.1.0"

# =============================================================================
# PLUGIN NAMING
# =============================================================================
PLUGIN_PREFIX: Final[str] = "logstash"
TYPE_INPUT: Final[str] = "input"
TYPE_OUTPUT: Final[str] = "output"
TYPE_FILTER: Final[str] = "filter"
TYPE_CODEC: Final[str] = "codec"
TYPE_INTEGRATION: Final[str] = "integration"
PLUGIN_TYPES: Final[frozenset[str]] = frozenset(
    {TYPE_INPUT, TYPE_OUTPUT, TYPE_FILTER, TYPE_CODEC, TYPE_INTEGRATION}
)
EMBEDDABLE_PLUGIN_TYPES: Final[frozenset[str]] = PLUGIN_TYPES - {TYPE_INTEGRATION}

# Floating reference used when a plugin is not pinned to a release
DEFAULT_BRANCH: Final[str] = "main"
RELEASE_TAG_PATTERN: Final[str] = r"\Av\d+\.\d+\.\d+"

# =============================================================================
# SOURCE FILES
# =============================================================================
DOC_INDEX_PATH: Final[str] = "docs/index.asciidoc"
EMBEDDED_DOC_PATH_FORMAT: Final[str] = "docs/{type}-{name}.asciidoc"
CHANGELOG_PATH: Final[str] = "CHANGELOG.md"

# =============================================================================
# HTTP CLIENT DEFAULTS
# =============================================================================
DEFAULT_HTTP_TIMEOUT_SECONDS: Final[float] = 30.0
DEFAULT_HTTP_MAX_RETRIES: Final[int] = 5
DEFAULT_HTTP_BACKOFF_SECONDS: Final[float] = 1.0

# =============================================================================
# RUBYGEMS API
# =============================================================================
RUBYGEMS_BASE_URL: Final[str] = "https://rubygems.org"
RUBYGEMS_VERSIONS_PATH: Final[str] = "/api/v1/versions/{name}.json"

# =============================================================================
# GITHUB API
# =============================================================================
GITHUB_API_BASE: Final[str] = "https://api.github.com"
GITHUB_RAW_BASE: Final[str] = "https://raw.githubusercontent.com"
GITHUB_WEB_BASE: Final[str] = "https://github.com"
GITHUB_PAGE_SIZE: Final[int] = 100
GITHUB_RATE_LIMIT_WARNING: Final[int] = 100

DEFAULT_PLUGIN_ORG: Final[str] = "logstash-plugins"
DEFAULT_DOCS_REPO: Final[str] = "elastic/logstash-docs"
DEFAULT_DOCS_BRANCH: Final[str] = "versioned_plugin_docs"

# =============================================================================
# REMOTE DOCUMENTS
# =============================================================================
ALIAS_DEFINITIONS_URL: Final[str] = (
    "https://raw.githubusercontent.com/elastic/logstash/main/"
    "logstash-core/src/main/resources/org/logstash/plugins/AliasRegistry.yml"
)
STACK_VERSIONS_BASE_URL: Final[str] = (
    "https://raw.githubusercontent.com/elastic/docs/master/shared/versions/stack/"
)

# =============================================================================
# DOCUMENT PLACEHOLDERS
# =============================================================================
PLACEHOLDER_VERSION: Final[str] = "%VERSION%"
PLACEHOLDER_RELEASE_DATE: Final[str] = "%RELEASE_DATE%"
PLACEHOLDER_CHANGELOG_URL: Final[str] = "%CHANGELOG_URL%"
PLACEHOLDER_BRANCH: Final[str] = "%BRANCH%"
PLACEHOLDER_ECS_VERSION: Final[str] = "%ECS_VERSION%"
UNRELEASED: Final[str] = "unreleased"
RELEASE_DATE_FORMAT: Final[str] = "%Y-%m-%d"

# =============================================================================
# PIPELINE DEFAULTS
# =============================================================================
DEFAULT_PARALLELISM: Final[int] = 4
DEFAULT_PLUGIN_REGEX: Final[str] = "logstash-(?:codec|filter|input|output|integration)"
DEFAULT_PLUGIN_SOURCE: Final[str] = "default"
PLACEHOLDER_PLUGIN_TYPES: Final[tuple[str, ...]] = (TYPE_INTEGRATION,)
REBUILD_LOOKBACK_HOURS: Final[int] = 24

# =============================================================================
# CONFIG FILE
# =============================================================================
CONFIG_FILE_NAME: Final[str] = "settings.yml"

# =============================================================================
# LOGGING
# =============================================================================
LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"
