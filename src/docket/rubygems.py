"""rubygems.org release metadata.

This module provides two layers:
- RubygemsClient: the HTTP client for the rubygems.org versions API, with a
  bounded number of attempts for rate limiting and server errors.
- RubygemInfo: a per-gem cache that fetches the release list at most once,
  no matter how many workers ask for it.

Uses the rubygems.org API v1 via httpx.

Example:
    client = RubygemsClient(RubygemsConfig())
    info = RubygemInfo("logstash-input-beats", client)
    info.latest()                 # "9.0.0"
    info.for_version("9.0.0")     # {"number": "9.0.0", "created_at": ..., ...}
"""

from __future__ import annotations

import json
import re
import time
from datetime import datetime
from typing import Any

import httpx
from packaging.version import InvalidVersion, Version

from docket.config import RubygemsConfig
from docket.constants import RUBYGEMS_VERSIONS_PATH
from docket.logging import get_logger
from docket.threadsafe import Deferral

logger = get_logger(__name__)

GemData = dict[str, Any]

_LEADING_RELEASE = re.compile(r"\d+(?:\.\d+)*")
_TRANSIENT_STATUS = frozenset({429, 500, 502, 503, 504})


def version_key(version: str) -> Version:
    """Sort key for gem versions.

    Gem versions are mostly PEP 440 compatible (`1.2.3`, `2.0.0.beta1`,
    `1.0.0.pre.1`). Anything else is ordered by its leading numeric release
    as a prerelease of it.
    """
    try:
        return Version(version)
    except InvalidVersion:
        match = _LEADING_RELEASE.match(version)
        release = match.group(0) if match else "0"
        return Version(f"{release}.dev0")


def is_prerelease(version: str) -> bool:
    """RubyGems semantics: a version containing a letter is a prerelease."""
    return any(c.isalpha() for c in version)


class RubygemsClient:
    """HTTP client for the rubygems.org versions API.

    The client is shared by all workers of a run; httpx connection pools
    are thread-safe.
    """

    def __init__(self, config: RubygemsConfig | None = None) -> None:
        self._config = config or RubygemsConfig()
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self._config.base_url,
                headers={"Accept": "application/json"},
                timeout=self._config.timeout_seconds,
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def fetch_versions(self, gem_name: str) -> list[GemData] | None:
        """Fetch all published versions of a gem.

        Rate limiting (429), server errors and transport failures are retried
        up to `max_attempts` times in total, sleeping a little longer after
        each attempt.

        Args:
            gem_name: Name of the gem on rubygems.org.

        Returns:
            The versions as returned by the API, or None if the gem is not
            published or the registry could not be reached.
        """
        client = self._get_client()
        path = RUBYGEMS_VERSIONS_PATH.format(name=gem_name)
        attempts = self._config.max_attempts

        for attempt in range(1, attempts + 1):
            try:
                response = client.get(path)
            except httpx.TransportError as e:
                logger.warning(
                    f"[gem:{gem_name}]: request failed ({e}), attempt {attempt}/{attempts}"
                )
                self._backoff(attempt, attempts)
                continue

            if response.status_code == 200:
                # some gemspecs carry invalid bytes; decode leniently
                body = response.content.decode("utf-8", errors="replace")
                try:
                    return json.loads(body)
                except ValueError as e:
                    logger.warning(
                        f"[gem:{gem_name}]: unreadable response from rubygems.org ({e})"
                    )
                    return None

            if response.status_code == 404:
                logger.debug(f"[gem:{gem_name}]: not published to rubygems.org")
                return None

            if response.status_code in _TRANSIENT_STATUS:
                logger.warning(
                    f"[gem:{gem_name}]: rubygems.org returned {response.status_code}, "
                    f"attempt {attempt}/{attempts}"
                )
                self._backoff(attempt, attempts)
                continue

            logger.warning(f"[gem:{gem_name}]: rubygems.org returned {response.status_code}")
            return None

        logger.warning(f"[gem:{gem_name}]: giving up after {attempts} attempts")
        return None

    def _backoff(self, attempt: int, attempts: int) -> None:
        if attempt < attempts and self._config.backoff_seconds:
            time.sleep(self._config.backoff_seconds * attempt)


class RubygemInfo:
    """Cached release metadata for one gem.

    The release list is fetched lazily on first access and at most once per
    instance, even when many threads ask concurrently.
    """

    def __init__(self, gem_name: str, client: RubygemsClient) -> None:
        self.gem_name = gem_name
        self._client = client
        self._gemdata_by_version: Deferral[dict[str, GemData]] = Deferral(self._fetch)

    def versions(self) -> list[str]:
        """Release versions, newest first."""
        return list(self._gemdata_by_version.get())

    def for_version(self, version: str | None) -> GemData | None:
        """Gem data for the given version, or None if it was not published."""
        if version is None:
            return None
        return self._gemdata_by_version.get().get(str(version))

    def latest(self) -> str | None:
        """The newest version, or None when the gem has no releases."""
        versions = self.versions()
        return versions[0] if versions else None

    def is_prerelease(self, version: str) -> bool:
        """Whether the version is flagged as a prerelease."""
        gem_data = self.for_version(version)
        if gem_data is not None and "prerelease" in gem_data:
            return bool(gem_data["prerelease"])
        return is_prerelease(version)

    def release_date(self, version: str | None) -> datetime | None:
        """The publication time of a version, or None if unknown."""
        gem_data = self.for_version(version)
        created_at = gem_data and gem_data.get("created_at")
        if not created_at:
            return None
        return datetime.fromisoformat(created_at.replace("Z", "+00:00"))

    def _fetch(self) -> dict[str, GemData]:
        logger.info(f"[gem:{self.gem_name}]: fetching release metadata from rubygems")
        releases = self._client.fetch_versions(self.gem_name)
        if not releases:
            logger.warning(f"[gem:{self.gem_name}]: failed to fetch versions")
            return {}

        releases = sorted(releases, key=lambda gem_data: version_key(gem_data["number"]))
        return {gem_data["number"]: gem_data for gem_data in reversed(releases)}
