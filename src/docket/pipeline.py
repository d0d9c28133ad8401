"""Current plugin reference generation.

Given the plugin report of a Logstash build (gem name -> bundled version),
this pipeline writes one asciidoc page per documentable plugin:

1. Load the alias registry. Without it the run cannot start.
2. Process integration gems, then everything else, each phase on a pool of
   worker threads. Plugins that moved into an integration are claimed by
   the integration phase, so their stale standalone gems are skipped.
3. For every gem, resolve the release on rubygems.org, find its GitHub
   source, and expand the release into its embedded plugins and aliases.
4. Write each unit's docs, at most once per canonical name per run.

Example:
    pipeline = PluginDocsPipeline(config, options, rubygems=rubygems, github=github)
    report = pipeline.run(PluginReport.model_validate_json(path.read_text()))
    if not report.has_changes:
        print("Nothing to do")
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

from docket.aliases import AliasDefinitionsLoader, AliasTable
from docket.config import DocketConfig
from docket.constants import PLUGIN_PREFIX, TYPE_INTEGRATION
from docket.content import no_version_bump, render_plugin_doc
from docket.exceptions import SourceError, UpstreamError
from docket.github import GitHubClient
from docket.layout import DocsLayout
from docket.logging import LogContext, get_logger
from docket.models import DocOutcome, PluginReport, PluginReportEntry, RunOptions, RunReport
from docket.plugins import Plugin
from docket.repository import Repository
from docket.rubygems import GemData, RubygemsClient
from docket.sources import GitHubSource, Source
from docket.threadsafe import ThreadsafeIndex, ThreadsafeSet

logger = get_logger(__name__)

ReportItem = tuple[str, PluginReportEntry]


def is_integration_gem(gem_name: str) -> bool:
    return gem_name.startswith(f"{PLUGIN_PREFIX}-{TYPE_INTEGRATION}-")


def partition_integrations(
    items: Iterable[ReportItem],
) -> tuple[list[ReportItem], list[ReportItem]]:
    """Split report items into (integration gems, other gems), keeping order."""
    integrations: list[ReportItem] = []
    others: list[ReportItem] = []
    for item in items:
        (integrations if is_integration_gem(item[0]) else others).append(item)
    return integrations, others


class PluginDocsPipeline:
    """Writes the current plugin reference for a Logstash build.

    One instance is one run: the set of processed plugins is scoped to it.
    """

    def __init__(
        self,
        config: DocketConfig,
        options: RunOptions,
        *,
        rubygems: RubygemsClient,
        github: GitHubClient,
        alias_loader: AliasDefinitionsLoader | None = None,
    ) -> None:
        self._config = config
        self._options = options
        self._rubygems = rubygems
        self._github = github
        self._alias_loader = alias_loader or AliasDefinitionsLoader(config.aliases_url, github)
        self.layout = DocsLayout(options.output_path)

        self._processed: ThreadsafeSet[str] = ThreadsafeSet()
        self._written: ThreadsafeSet[str] = ThreadsafeSet()
        self._skipped: ThreadsafeIndex[str, ThreadsafeSet[str]] = ThreadsafeIndex(
            lambda _: ThreadsafeSet()
        )
        self._names_by_type: ThreadsafeIndex[str, ThreadsafeSet[str]] = ThreadsafeIndex(
            lambda _: ThreadsafeSet()
        )

    def run(self, report: PluginReport) -> RunReport:
        """Generate documentation for every plugin in the report.

        Raises:
            AliasDefinitionsError: If the alias registry is unavailable.
            PluginError: If a gem or embedded plugin name is invalid.
        """
        alias_table = self._alias_loader.load()

        integrations, others = partition_integrations(sorted(report.successful.items()))
        logger.info(
            f"Generating docs for {len(integrations)} integration and {len(others)} other gems"
        )
        self._run_phase(integrations, alias_table)
        self._run_phase(others, alias_table)

        return self._build_report()

    def _run_phase(self, items: Sequence[ReportItem], alias_table: AliasTable) -> None:
        if not items:
            return

        with ThreadPoolExecutor(
            max_workers=self._options.parallelism,
            thread_name_prefix="plugindocs",
        ) as pool:
            futures = [
                pool.submit(self.process_gem, gem_name, entry, alias_table)
                for gem_name, entry in items
            ]
            for future in as_completed(futures):
                future.result()

    def process_gem(
        self,
        gem_name: str,
        entry: PluginReportEntry,
        alias_table: AliasTable,
    ) -> None:
        """Document one gem of the report and everything it wraps."""
        with LogContext(repository=gem_name):
            if not self._processed.add(gem_name):
                self._skip(gem_name, DocOutcome.SKIPPED_ALREADY_PROCESSED.value)
                return

            if self._config.is_skipped(gem_name):
                self._skip(gem_name, "skip list")
                return

            version = None if self._options.use_main else entry.version
            try:
                self._document_release(gem_name, version, entry, alias_table)
            except UpstreamError as e:
                logger.error(f"[repository:{gem_name}]: {e}; skipping")
                self._skip(gem_name, "upstream error")

    def _document_release(
        self,
        gem_name: str,
        version: str | None,
        entry: PluginReportEntry,
        alias_table: AliasTable,
    ) -> None:
        repository = Repository.from_rubygems(
            gem_name,
            version,
            source_resolver=lambda gem_data: self.source_for(gem_name, gem_data),
            client=self._rubygems,
        )
        if repository is None:
            self._skip(gem_name, "release not found")
            return

        released_plugin = repository.released_plugin(version)
        if released_plugin.type == TYPE_INTEGRATION and not entry.is_default:
            logger.info(f"{repository.desc}: skipping non-default integration plugin")
            self._skip(gem_name, "non-default integration")
            return

        for plugin in released_plugin.with_wrapped_plugins(alias_table):
            if plugin is not released_plugin and not self._processed.add(plugin.canonical_name):
                logger.info(f"{plugin.desc}: already processed; skipping")
                self._skip(plugin.canonical_name, DocOutcome.SKIPPED_ALREADY_PROCESSED.value)
                continue

            outcome = self.write_doc(plugin, is_default_plugin=entry.is_default)
            if outcome is not DocOutcome.SKIPPED_NO_DOC:
                self._names_by_type.fetch(plugin.type).add(plugin.name)

    def write_doc(self, plugin: Plugin, *, is_default_plugin: bool) -> DocOutcome:
        """Fetch, render and write the current docs of one plugin."""
        logger.debug(f"{plugin.desc}: fetching documentation")
        content = plugin.documentation()
        if content is None:
            logger.warning(f"{plugin.desc}: failed to fetch doc; skipping")
            self._skip(plugin.canonical_name, DocOutcome.SKIPPED_NO_DOC.value)
            return DocOutcome.SKIPPED_NO_DOC

        content = render_plugin_doc(content, plugin, is_default_plugin=is_default_plugin)
        path = self.layout.plugin_doc_path(plugin.type, plugin.name)

        if (
            self._options.skip_existing
            and path.exists()
            and no_version_bump(path.read_text(encoding="utf-8"), content)
        ):
            logger.info(f"{plugin.desc}: skipping since no version bump and doc exists")
            self._skip(plugin.canonical_name, DocOutcome.SKIPPED_UNCHANGED.value)
            return DocOutcome.SKIPPED_UNCHANGED

        self.layout.write(path, content)
        self._written.add(str(path))
        logger.info(f"{plugin.canonical_name}@{plugin.tag}: written", extra={"path": str(path)})
        return DocOutcome.WRITTEN

    def source_for(self, gem_name: str, gem_data: GemData) -> Source:
        """Locate a gem's source from its metadata.

        Gems declaring a `source_code_uri` are read from there; the rest are
        assumed to live in the default organization under the gem's name.

        Raises:
            SourceError: If the declared source is not on GitHub.
        """
        source_code_uri = (gem_data.get("metadata") or {}).get("source_code_uri")
        if not source_code_uri:
            return GitHubSource(gem_name, self._config.github.default_org, client=self._github)

        source = GitHubSource.from_url(source_code_uri, client=self._github)
        if source is None:
            raise SourceError(f"unsupported source `{source_code_uri}`", {"gem": gem_name})
        return source

    def _skip(self, canonical_name: str, reason: str) -> None:
        self._skipped.fetch(canonical_name).add(reason)

    def _build_report(self) -> RunReport:
        return RunReport(
            written=sorted(self._written),
            skipped={
                name: ", ".join(reasons.sorted()) for name, reasons in self._skipped.items()
            },
            names_by_type={
                type: names.sorted() for type, names in sorted(self._names_by_type.items())
            },
        )
