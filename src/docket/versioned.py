"""Versioned plugin reference generation.

The versioned plugin reference keeps one page per plugin release, plus an
index of releases per plugin and an index of plugins per type. It is
rebuilt incrementally against a checkout of the docs repository:

1. Discover every plugin repository of the plugins organization.
2. Mark for rebuild the plugins whose latest release happened after the
   reference time. Integrations mark each plugin they embed, since those
   may have been released from a standalone repository before.
3. For marked repositories, write a page for every tagged release, newest
   first, until a release without documentation is found.
4. Rewrite the alias, release and type indices.

Example:
    pipeline = VersionedDocsPipeline(config, options, docs_root=checkout,
                                     rubygems=rubygems, github=github)
    stack = fetch_stack_versions(github, config.stack_versions_base_url)
    report = pipeline.run(stack, reference_time=publisher.rebuild_since())
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from pathlib import Path

import httpx

from docket.aliases import AliasDefinitionsLoader, AliasTable
from docket.config import DocketConfig
from docket.constants import GITHUB_RATE_LIMIT_WARNING
from docket.content import (
    StackVersions,
    format_release_date,
    parse_stack_versions,
    render_versioned_doc,
)
from docket.exceptions import SourceError, UpstreamError
from docket.github import GitHubClient
from docket.layout import DocsLayout
from docket.logging import LogContext, get_logger
from docket.models import DocOutcome, RunOptions, RunReport
from docket.plugins import ArtifactPlugin, Plugin
from docket.repository import Repository
from docket.rubygems import RubygemsClient, version_key
from docket.sources import GitHubSource
from docket.threadsafe import ThreadsafeIndex, ThreadsafeSet

logger = get_logger(__name__)

_CURRENT_VERSIONS_INCLUDE = re.compile(r"include::(.*?)\.asciidoc", re.DOTALL)


def fetch_stack_versions(client: GitHubClient, base_url: str) -> StackVersions:
    """Resolve the current stack and ECS versions from the shared docs.

    `current.asciidoc` only includes the document of the current release,
    which declares the versions.

    Raises:
        SourceError: If either document cannot be fetched or understood.
    """
    try:
        pointer = client.get_text(f"{base_url}current.asciidoc")
        match = _CURRENT_VERSIONS_INCLUDE.search(pointer)
        if match is None:
            raise SourceError("current stack versions document has no include", {"url": base_url})
        stack = parse_stack_versions(client.get_text(f"{base_url}{match.group(1)}.asciidoc"))
    except httpx.HTTPError as e:
        raise SourceError("stack versions unavailable", {"error": str(e)}) from e
    except ValueError as e:
        raise SourceError("invalid stack versions document", {"error": str(e)}) from e

    logger.info(f"Stack version: {stack.branch}, ECS version: {stack.ecs_version}")
    return stack


def check_rate_limit(client: GitHubClient) -> tuple[int, int] | None:
    """Log the GitHub API rate limit, warning when it is nearly exhausted."""
    try:
        remaining, limit = client.rate_limit()
    except httpx.HTTPError as e:
        logger.warning(f"Could not read the GitHub rate limit: {e}")
        return None
    logger.info(f"Current GitHub rate limit: {remaining}/{limit}")
    if remaining < GITHUB_RATE_LIMIT_WARNING:
        logger.warning("API rate limit is close to being reached; this run may fail")
    return remaining, limit


def _as_utc(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


class VersionedDocsPipeline:
    """Writes the versioned plugin reference into a docs checkout."""

    def __init__(
        self,
        config: DocketConfig,
        options: RunOptions,
        *,
        docs_root: Path,
        rubygems: RubygemsClient,
        github: GitHubClient,
        alias_loader: AliasDefinitionsLoader | None = None,
    ) -> None:
        self._config = config
        self._options = options
        self._rubygems = rubygems
        self._github = github
        self._alias_loader = alias_loader or AliasDefinitionsLoader(config.aliases_url, github)
        self.layout = DocsLayout(docs_root)

        self._requiring_rebuild: ThreadsafeSet[str] = ThreadsafeSet()
        self._plugin_versions: ThreadsafeIndex[str, ThreadsafeSet[Plugin]] = ThreadsafeIndex(
            lambda _: ThreadsafeSet()
        )
        self._names_by_type: ThreadsafeIndex[str, ThreadsafeSet[str]] = ThreadsafeIndex(
            lambda _: ThreadsafeSet()
        )
        self._written: ThreadsafeSet[str] = ThreadsafeSet()
        self._skipped: ThreadsafeIndex[str, ThreadsafeSet[str]] = ThreadsafeIndex(
            lambda _: ThreadsafeSet()
        )

    def discover_repositories(self) -> list[Repository]:
        """Plugin repositories of the plugins organization plus extra ones.

        Raises:
            SourceError: If the organization cannot be listed.
        """
        org = self._config.github.plugins_org
        pattern = re.compile(self._options.plugin_regex)

        names = {name for name in self._github.list_org_repos(org) if pattern.search(name)}
        full_names = [
            f"{org}/{name}" for name in sorted(names) if not self._config.is_skipped(name)
        ]
        full_names.extend(self._config.additional_org_plugins)
        logger.info(f"Found {len(full_names)} plugin repositories")

        repositories = []
        for full_name in full_names:
            source = GitHubSource(full_name, client=self._github)
            repositories.append(Repository.from_source(source.repo, source, client=self._rubygems))
        return repositories

    def run(
        self,
        stack: StackVersions,
        reference_time: datetime,
        repositories: Sequence[Repository] | None = None,
    ) -> RunReport:
        """Rebuild the versioned docs of plugins released since `reference_time`.

        Args:
            stack: Stack versions substituted into every page.
            reference_time: Releases at or after this moment trigger a rebuild.
            repositories: Repositories to consider; discovered when omitted.

        Raises:
            AliasDefinitionsError: If the alias registry is unavailable.
            SourceError: If repositories cannot be discovered.
        """
        alias_table = self._alias_loader.load()
        if repositories is None:
            repositories = self.discover_repositories()
        reference_time = _as_utc(reference_time)
        logger.info(f"Generating docs since {reference_time.isoformat()}")

        self._for_each(repositories, lambda repo: self.mark_for_rebuild(repo, reference_time))
        self._for_each(repositories, lambda repo: self.rebuild(repo, stack))

        self._write_alias_indices(alias_table)
        self._write_versions_indices()
        self._write_type_indices()

        return RunReport(
            written=sorted(self._written),
            skipped={
                name: ", ".join(reasons.sorted()) for name, reasons in self._skipped.items()
            },
            names_by_type={
                type: names.sorted() for type, names in sorted(self._names_by_type.items())
            },
        )

    def _for_each(
        self,
        repositories: Sequence[Repository],
        action: Callable[[Repository], None],
    ) -> None:
        with ThreadPoolExecutor(
            max_workers=self._options.parallelism,
            thread_name_prefix="versioned",
        ) as pool:
            futures = [pool.submit(self._guarded, action, repository) for repository in repositories]
            for future in as_completed(futures):
                future.result()

    def _guarded(self, action: Callable[[Repository], None], repository: Repository) -> None:
        with LogContext(repository=repository.name):
            try:
                action(repository)
            except UpstreamError as e:
                logger.error(f"{repository.desc}: {e}; skipping")
                self._skipped.fetch(repository.name).add("upstream error")

    def mark_for_rebuild(self, repository: Repository, reference_time: datetime) -> None:
        """Mark the plugins of a repository's latest release if it is recent."""
        latest_release = repository.last_release()
        if latest_release is None:
            logger.warning(f"{repository.desc}: no releases on rubygems")
            return

        release_date = latest_release.release_date
        if release_date is None or release_date < reference_time:
            logger.debug(f"{repository.desc}: no new releases")
            return

        logger.info(f"{repository.desc}: found new release")
        for plugin in latest_release.with_embedded_plugins():
            if self._requiring_rebuild.add(plugin.canonical_name):
                logger.info(f"{plugin.desc}: marking for reindex")

    def rebuild(self, repository: Repository, stack: StackVersions) -> None:
        """Write the release pages of a repository, if it needs a rebuild.

        Repositories that do not only keep their already indexed plugins
        listed in the type indices.
        """
        if repository.name not in self._requiring_rebuild:
            logger.debug(f"{repository.desc}: rebuild not required")
            latest_release = repository.last_release()
            if latest_release is not None:
                for plugin in latest_release.with_embedded_plugins():
                    if self.layout.versions_index_exists(plugin.type, plugin.name):
                        self._names_by_type.fetch(plugin.type).add(plugin.name)
            return

        logger.info(f"{repository.desc}: rebuilding versioned docs")
        for released_plugin in repository.source_tagged_releases():
            if not self._expand_release(released_plugin, stack):
                break
            if self._options.latest_only:
                break

    def _expand_release(self, released_plugin: ArtifactPlugin, stack: StackVersions) -> bool:
        for plugin in released_plugin.with_embedded_plugins():
            if not self.expand_plugin_doc(plugin, stack):
                logger.warning(
                    f"{plugin.desc}: documentation not available; "
                    "skipping remaining releases from repository"
                )
                return False
            self._plugin_versions.fetch(plugin.canonical_name).add(plugin)
            self._names_by_type.fetch(plugin.type).add(plugin.name)
        return True

    def expand_plugin_doc(self, plugin: Plugin, stack: StackVersions) -> bool:
        """Write the page of one plugin release.

        Returns:
            True if the page exists on disk afterwards.
        """
        path = self.layout.versioned_doc_path(plugin.type, plugin.name, plugin.tag)
        if self._options.skip_existing and path.exists():
            logger.debug(f"{plugin.desc}: skipping, file already exists")
            return True

        logger.debug(f"{plugin.desc}: fetching documentation")
        content = plugin.documentation()
        if content is None:
            self._skipped.fetch(f"{plugin.canonical_name}@{plugin.tag}").add(
                DocOutcome.SKIPPED_NO_DOC.value
            )
            return False

        self.layout.write(path, render_versioned_doc(content, plugin, stack))
        self._written.add(str(path))
        logger.info(f"{plugin.desc}: {format_release_date(plugin.release_date)}")
        return True

    def _write_alias_indices(self, alias_table: AliasTable) -> None:
        for type, definition in alias_table.items():
            self._names_by_type.fetch(type).add(definition.alias)
            logger.debug(f"[plugin:{definition.alias}] reindexing alias of {definition.from_}")
            self.layout.write_alias_index(type, definition.alias, definition.from_)

    def _write_versions_indices(self) -> None:
        for canonical_name, plugins in sorted(self._plugin_versions.items()):
            releases = sorted(plugins, key=lambda p: version_key(p.version or "0"), reverse=True)
            first = releases[0]
            logger.debug(f"[plugin:{canonical_name}] reindexing {len(releases)} releases")
            path = self.layout.write_versions_index(
                first.type,
                first.name,
                [(p.tag, format_release_date(p.release_date)) for p in releases],
            )
            self._written.add(str(path))

    def _write_type_indices(self) -> None:
        for type, names in sorted(self._names_by_type.items()):
            logger.debug(f"[type:{type}] reindexing")
            self.layout.write_type_index(type, names.sorted())
