"""Settings loader for logstash-docket.

This module handles loading and validating the settings YAML file, with
support for environment variable expansion.

Example:
    config = load_config(Path("settings.yml"))
    if "logstash-input-example" in config.skip:
        print("example input is never documented")
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from docket.constants import (
    ALIAS_DEFINITIONS_URL,
    CONFIG_FILE_NAME,
    DEFAULT_DOCS_BRANCH,
    DEFAULT_DOCS_REPO,
    DEFAULT_HTTP_BACKOFF_SECONDS,
    DEFAULT_HTTP_MAX_RETRIES,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_PLUGIN_ORG,
    RUBYGEMS_BASE_URL,
    STACK_VERSIONS_BASE_URL,
)
from docket.exceptions import ConfigError


class GitHubConfig(BaseModel):
    """GitHub access configuration.

    Attributes:
        token: API token; required for tag listing and pull requests.
        default_org: Organization assumed for gems without a source URL.
        plugins_org: Organization whose repositories are versioned.
    """

    token: str = Field(default="${GITHUB_TOKEN}", description="GitHub API token (from env)")
    default_org: str = Field(
        default_factory=lambda: os.environ.get("PLUGIN_ORG", DEFAULT_PLUGIN_ORG),
        description="Fallback organization for plugin sources",
    )
    plugins_org: str = Field(default=DEFAULT_PLUGIN_ORG, description="Plugin organization")
    timeout_seconds: float = Field(default=DEFAULT_HTTP_TIMEOUT_SECONDS, gt=0)

    @property
    def resolved_token(self) -> str:
        """The token, or an empty string when the env var was not set."""
        return "" if self.token.startswith("$") else self.token


class RubygemsConfig(BaseModel):
    """rubygems.org access configuration."""

    base_url: str = Field(default=RUBYGEMS_BASE_URL, description="Registry base URL")
    max_attempts: int = Field(default=DEFAULT_HTTP_MAX_RETRIES, ge=1, le=20)
    backoff_seconds: float = Field(default=DEFAULT_HTTP_BACKOFF_SECONDS, ge=0)
    timeout_seconds: float = Field(default=DEFAULT_HTTP_TIMEOUT_SECONDS, gt=0)


class DocketConfig(BaseModel):
    """Root settings for logstash-docket.

    Attributes:
        skip: Gem names that are never documented.
        github: GitHub access configuration.
        rubygems: Registry access configuration.
        aliases_url: Location of the alias registry document.
        stack_versions_base_url: Location of the shared stack version docs.
        docs_repo: Repository receiving generated documentation.
        docs_branch: Branch pull requests are opened against.
        additional_org_plugins: `org/repo` plugins outside the plugins org.
    """

    skip: list[str] = Field(default_factory=list, description="Gems never documented")
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    rubygems: RubygemsConfig = Field(default_factory=RubygemsConfig)
    aliases_url: str = Field(default=ALIAS_DEFINITIONS_URL)
    stack_versions_base_url: str = Field(default=STACK_VERSIONS_BASE_URL)
    docs_repo: str = Field(default=DEFAULT_DOCS_REPO)
    docs_branch: str = Field(default=DEFAULT_DOCS_BRANCH)
    additional_org_plugins: list[str] = Field(
        default_factory=lambda: ["elastic/logstash-filter-elastic_integration"],
    )

    def is_skipped(self, gem_name: str) -> bool:
        return gem_name in self.skip


# Pattern to match ${VAR_NAME} or $VAR_NAME
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in settings values.

    Supports both ${VAR_NAME} and $VAR_NAME syntax.
    If the env var is not set, the placeholder is left unchanged.

    Args:
        value: The value to expand (can be str, dict, list, or primitive).

    Returns:
        The value with environment variables expanded.
    """
    if isinstance(value, str):

        def replace_env_var(match: re.Match[str]) -> str:
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, match.group(0))

        return ENV_VAR_PATTERN.sub(replace_env_var, value)

    elif isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [expand_env_vars(item) for item in value]

    else:
        return value


def load_config(config_path: Path | None = None) -> DocketConfig:
    """Load settings from a YAML file.

    Without an explicit path, `settings.yml` in the current directory is
    read if present, and the defaults are used otherwise. Defaults that
    reference environment variables (the GitHub token) are expanded too.

    Args:
        config_path: Path to the settings file. Defaults to settings.yml in
            the current directory.

    Returns:
        Validated settings.

    Raises:
        ConfigError: If an explicit path does not exist, or the file is not
            valid YAML or fails validation.
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILE_NAME
    elif not config_path.exists():
        raise ConfigError(f"Settings file not found: {config_path}")

    data: dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}", {"error": str(e)}) from e

        if not isinstance(data, dict):
            raise ConfigError(f"Settings in {config_path} must be a mapping")

    try:
        config = DocketConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {config_path}", {"error": str(e)}) from e

    return DocketConfig.model_validate(expand_env_vars(config.model_dump(by_alias=True)))
