"""Custom exceptions for logstash-docket.

This module defines a hierarchy of exceptions used throughout the docs
tooling. All exceptions inherit from DocketError, making it easy to catch
all docket-related errors in one place.

Exception Hierarchy:
    DocketError (base)
    ├── ConfigError - Settings loading/validation failures
    ├── PluginError (base for domain model validation)
    │   ├── PluginNameError
    │   └── UnsupportedPluginTypeError
    ├── UpstreamError (base for remote service failures)
    │   ├── RegistryError
    │   └── SourceError
    ├── AliasDefinitionsError - Alias registry unavailable (fatal)
    └── PublishError - git / pull request failures
"""

from typing import Any


class DocketError(Exception):
    """Base exception for all logstash-docket errors.

    Args:
        message: Human-readable error message.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigError(DocketError):
    """Raised when settings loading or validation fails.

    Examples:
        - Invalid YAML syntax in settings.yml
        - Values that do not match the settings schema
    """


class PluginError(DocketError):
    """Base exception for plugin construction errors.

    These are data or programming errors and are never retried.
    """


class PluginNameError(PluginError):
    """Raised when a name does not follow `logstash-<type>-<name>`."""


class UnsupportedPluginTypeError(PluginError):
    """Raised when a plugin variant does not support the parsed type.

    Examples:
        - `logstash-widget-foo` as a top-level plugin
        - an `integration` plugin embedded inside another integration
    """


class UpstreamError(DocketError):
    """Base exception for remote service errors.

    Args:
        message: Human-readable error message.
        service: Name of the service that raised the error.
        details: Optional dictionary with additional error context.
    """

    def __init__(
        self,
        message: str,
        service: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.service = service

    def __str__(self) -> str:
        base = f"[{self.service}] {self.message}"
        if self.details:
            return f"{base} | Details: {self.details}"
        return base


class RegistryError(UpstreamError):
    """Raised when rubygems.org metadata is required but unavailable.

    Examples:
        - An integration plugin with no published releases
        - No gem data for the version being documented
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, service="rubygems", details=details)


class SourceError(UpstreamError):
    """Raised when a source host cannot serve a request.

    Examples:
        - Tag listing without an authenticated client
        - A `source_code_uri` that is not hosted on GitHub
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, service="github", details=details)


class AliasDefinitionsError(DocketError):
    """Raised when the alias registry cannot be loaded.

    The pipeline cannot run without it, so this aborts before any work.
    """


class PublishError(DocketError):
    """Raised when committing or opening a pull request fails."""
