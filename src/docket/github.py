"""GitHub client for plugin sources and the documentation repository.

This client provides everything the docs tooling needs from GitHub:
- raw file contents at a given ref (no authentication required)
- release tags and organization repositories (authenticated)
- branch lookup and pull request creation for publishing
- the current API rate limit

Uses GitHub REST API v3 via httpx. Calls are synchronous; the pipelines run
them from worker threads.

Example:
    client = GitHubClient(token="ghp_xxx")
    client.read_raw("logstash-plugins", "logstash-input-beats", "v9.0.0",
                    "docs/index.asciidoc")
    client.list_tags("logstash-plugins/logstash-input-beats")
"""

from __future__ import annotations

from typing import Any

import httpx

from docket.constants import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    GITHUB_API_BASE,
    GITHUB_PAGE_SIZE,
    GITHUB_RAW_BASE,
)
from docket.exceptions import PublishError, SourceError
from docket.logging import get_logger

logger = get_logger(__name__)


class GitHubClient:
    """Thin wrapper over the GitHub REST API and raw content host.

    Attributes:
        token: API token; empty for anonymous access.
    """

    def __init__(
        self,
        token: str = "",
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self.token = token
        self._timeout = timeout
        self._api_client: httpx.Client | None = None
        self._raw_client: httpx.Client | None = None

    @property
    def authenticated(self) -> bool:
        return bool(self.token)

    def _get_client(self) -> httpx.Client:
        """Get or create the API client with GitHub headers."""
        if self._api_client is None:
            headers = {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._api_client = httpx.Client(
                base_url=GITHUB_API_BASE,
                headers=headers,
                timeout=self._timeout,
            )
        return self._api_client

    def _get_raw_client(self) -> httpx.Client:
        """Get or create the raw content client."""
        if self._raw_client is None:
            self._raw_client = httpx.Client(
                base_url=GITHUB_RAW_BASE,
                timeout=self._timeout,
                follow_redirects=True,
            )
        return self._raw_client

    def close(self) -> None:
        """Close the HTTP clients."""
        for client in (self._api_client, self._raw_client):
            if client is not None:
                client.close()
        self._api_client = None
        self._raw_client = None

    def read_raw(self, org: str, repo: str, ref: str, path: str) -> str | None:
        """Read a file's contents at a ref.

        Args:
            org: Owner of the repository.
            repo: Repository name.
            ref: Tag or branch.
            path: Path of the file inside the repository.

        Returns:
            The file contents, or None if the file does not exist at that ref
            or could not be fetched.
        """
        try:
            response = self._get_raw_client().get(f"/{org}/{repo}/{ref}/{path}")
        except httpx.HTTPError as e:
            logger.warning(f"[{org}/{repo}@{ref}]: failed to read {path}: {e}")
            return None

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            logger.warning(
                f"[{org}/{repo}@{ref}]: reading {path} returned {response.status_code}"
            )
            return None
        return response.text

    def get_text(self, url: str) -> str:
        """Fetch an arbitrary text document by absolute URL.

        Raises:
            httpx.HTTPError: On transport errors or non-success responses.
        """
        response = self._get_raw_client().get(url)
        response.raise_for_status()
        return response.text

    def list_tags(self, full_name: str) -> list[str]:
        """List every tag name of a repository.

        Args:
            full_name: Repository in "owner/repo" format.

        Raises:
            SourceError: If no token is configured or the listing fails.
        """
        self._require_token(f"listing tags of {full_name}")
        return [tag["name"] for tag in self._paginate(f"/repos/{full_name}/tags")]

    def list_org_repos(self, org: str) -> list[str]:
        """List the repository names of an organization.

        Raises:
            SourceError: If no token is configured or the listing fails.
        """
        self._require_token(f"listing repositories of {org}")
        return [repo["name"] for repo in self._paginate(f"/orgs/{org}/repos")]

    def branch_exists(self, full_name: str, branch: str) -> bool:
        """Check whether a branch exists in a repository."""
        response = self._get_client().get(f"/repos/{full_name}/branches/{branch}")
        if response.status_code == 404:
            return False
        response.raise_for_status()
        return True

    def create_pull_request(
        self,
        full_name: str,
        *,
        base: str,
        head: str,
        title: str,
        body: str = "",
    ) -> str:
        """Open a pull request.

        Returns:
            The pull request's web URL.

        Raises:
            PublishError: If GitHub refuses the pull request.
        """
        self._require_token(f"opening a pull request on {full_name}", error=PublishError)
        response = self._get_client().post(
            f"/repos/{full_name}/pulls",
            json={"base": base, "head": head, "title": title, "body": body},
        )
        if response.status_code >= 400:
            raise PublishError(
                f"Failed to open pull request on {full_name}",
                {"status": response.status_code, "response": response.text[:500]},
            )
        return response.json()["html_url"]

    def rate_limit(self) -> tuple[int, int]:
        """Return the (remaining, limit) core API rate limit."""
        response = self._get_client().get("/rate_limit")
        response.raise_for_status()
        core = response.json()["resources"]["core"]
        return core["remaining"], core["limit"]

    def _paginate(self, path: str) -> list[dict[str, Any]]:
        """Collect every page of a list endpoint by following `Link: next`."""
        client = self._get_client()
        items: list[dict[str, Any]] = []
        url: str | None = path
        params: dict[str, Any] | None = {"per_page": GITHUB_PAGE_SIZE}

        while url:
            try:
                response = client.get(url, params=params)
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise SourceError(f"GitHub request failed: {path}", {"error": str(e)}) from e
            items.extend(response.json())
            url = response.links.get("next", {}).get("url")
            # the next link already carries the query string
            params = None

        return items

    def _require_token(self, action: str, error: type[Exception] = SourceError) -> None:
        if not self.token:
            raise error(f"An authenticated GitHub client is required for {action}")
