"""CLI entry point for logstash-docket.

Commands:
    plugindocs: Write the current plugin reference for a Logstash build
    versioned: Rebuild the versioned plugin reference and open a pull request
    placeholder: Add an empty release index for a new plugin

Example:
    docket plugindocs plugins_report.json --output-path ../logstash
    docket versioned --output-path ./work --since 2025-01-01
    docket placeholder --output-path ./work --plugin-type integration --plugin-name aws
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path

import click
from pydantic import ValidationError

from docket import __version__
from docket.config import DocketConfig, load_config
from docket.constants import DEFAULT_PARALLELISM, DEFAULT_PLUGIN_REGEX, PLACEHOLDER_PLUGIN_TYPES
from docket.exceptions import DocketError
from docket.github import GitHubClient
from docket.layout import DocsLayout
from docket.logging import get_logger, setup_logging
from docket.models import PluginReport, RunOptions, RunReport
from docket.pipeline import PluginDocsPipeline
from docket.publisher import DocsPublisher
from docket.rubygems import RubygemsClient
from docket.versioned import VersionedDocsPipeline, check_rate_limit, fetch_stack_versions

logger = get_logger(__name__)

DOCS_CHECKOUT_DIR = "logstash-docs"
VERSIONED_BRANCH = "versioned_docs_new_content"
PLACEHOLDER_BRANCH = "new_plugin_placeholder"


def _success(msg: str) -> str:
    """Format success message with green checkmark."""
    return click.style("✓", fg="green") + " " + msg


def _error(msg: str) -> str:
    """Format error message with red X."""
    return click.style("✗", fg="red") + " " + msg


def _info(msg: str) -> str:
    """Format info message with blue arrow."""
    return click.style("→", fg="blue") + " " + msg


def _load_config(settings: Path | None) -> DocketConfig:
    try:
        return load_config(settings)
    except DocketError as e:
        click.echo(_error(str(e)), err=True)
        sys.exit(1)


def _clients(config: DocketConfig) -> tuple[RubygemsClient, GitHubClient]:
    github = GitHubClient(config.github.resolved_token, timeout=config.github.timeout_seconds)
    if github.authenticated:
        logger.info("Using a GitHub token")
    else:
        logger.info("Not using a GitHub token")
    return RubygemsClient(config.rubygems), github


def _summarize(report: RunReport) -> None:
    for name, reason in sorted(report.skipped.items()):
        logger.debug(f"skipped {name}: {reason}")
    click.echo(
        _success(f"Wrote {len(report.written)} document(s), skipped {len(report.skipped)}")
    )


settings_option = click.option(
    "--settings",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the settings file (default: ./settings.yml)",
)
parallelism_option = click.option(
    "--parallelism",
    type=click.IntRange(min=1),
    default=DEFAULT_PARALLELISM,
    show_default=True,
    help="Number of worker threads",
)


@click.group()
@click.version_option(version=__version__, prog_name="docket")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """logstash-docket - Logstash plugin documentation generator.

    Fetches plugin documentation from the plugins' sources at the versions
    published on rubygems.org, and lays it out as the Logstash reference.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(logging.DEBUG if verbose else logging.INFO)


@cli.command()
@click.argument("plugins_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output-path",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
    help="Top-level directory of the Logstash checkout to write into",
)
@click.option("--main", "use_main", is_flag=True, help="Read docs from main, not the release")
@click.option("--skip-existing", is_flag=True, help="Keep docs whose version did not change")
@settings_option
@parallelism_option
def plugindocs(
    plugins_json: Path,
    output_path: Path,
    use_main: bool,
    skip_existing: bool,
    settings: Path | None,
    parallelism: int,
) -> None:
    """Write the current plugin reference for a Logstash build.

    PLUGINS_JSON is the plugin report of the build, listing the version of
    every bundled plugin.
    """
    config = _load_config(settings)
    try:
        report = PluginReport.model_validate_json(plugins_json.read_text())
    except ValidationError as e:
        click.echo(_error(f"Invalid plugin report {plugins_json}: {e}"), err=True)
        sys.exit(1)

    options = RunOptions(
        output_path=output_path,
        parallelism=parallelism,
        use_main=use_main,
        skip_existing=skip_existing,
    )
    rubygems, github = _clients(config)
    try:
        result = PluginDocsPipeline(config, options, rubygems=rubygems, github=github).run(report)
    except DocketError as e:
        click.echo(_error(str(e)), err=True)
        sys.exit(1)
    finally:
        rubygems.close()
        github.close()

    if not result.has_changes:
        click.echo(_info("Nothing to do"))
        return
    _summarize(result)


@cli.command()
@click.option(
    "--output-path",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
    help="Directory the docs repository is cloned into and written to",
)
@click.option("--skip-existing", is_flag=True, help="Keep release pages that already exist")
@click.option("--latest-only", is_flag=True, help="Only document the latest release of each plugin")
@click.option(
    "--plugin-regex",
    default=DEFAULT_PLUGIN_REGEX,
    show_default=True,
    help="Only document repositories matching this pattern",
)
@click.option("--dry-run", is_flag=True, help="Do not commit or open a pull request")
@click.option(
    "--since",
    type=click.DateTime(),
    default=None,
    help="Rebuild plugins released after this time (default: a day before the last docs commit)",
)
@settings_option
@parallelism_option
def versioned(
    output_path: Path,
    skip_existing: bool,
    latest_only: bool,
    plugin_regex: str,
    dry_run: bool,
    since: datetime | None,
    settings: Path | None,
    parallelism: int,
) -> None:
    """Rebuild the versioned plugin reference and propose it as a pull request."""
    config = _load_config(settings)
    options = RunOptions(
        output_path=output_path,
        parallelism=parallelism,
        skip_existing=skip_existing,
        latest_only=latest_only,
        dry_run=dry_run,
        plugin_regex=plugin_regex,
        since=since,
    )
    rubygems, github = _clients(config)
    docs_root = output_path / DOCS_CHECKOUT_DIR
    publisher = DocsPublisher(docs_root, github, config.docs_repo, config.docs_branch)

    try:
        check_rate_limit(github)
        publisher.clone()
        stack = fetch_stack_versions(github, config.stack_versions_base_url)
        pipeline = VersionedDocsPipeline(
            config, options, docs_root=docs_root, rubygems=rubygems, github=github
        )
        click.echo(_info(f"Writing to {docs_root}"))
        result = pipeline.run(stack, reference_time=options.since or publisher.rebuild_since())

        if not publisher.has_changes():
            click.echo(_info("No new versions detected. Nothing to do"))
            return
        _summarize(result)

        if options.dry_run:
            click.echo(_info("Dry run: not creating a pull request"))
            return
        url = publisher.publish(
            VERSIONED_BRANCH,
            message="updated versioned plugin docs",
            title="auto generated update of versioned plugin documentation",
        )
        if url:
            click.echo(_success(f"Opened {url}"))
    except DocketError as e:
        click.echo(_error(str(e)), err=True)
        sys.exit(1)
    finally:
        rubygems.close()
        github.close()


@cli.command()
@click.option(
    "--output-path",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
    help="Directory the docs repository is cloned into and written to",
)
@click.option("--plugin-type", required=True, help="Type of the new plugin (e.g., integration)")
@click.option("--plugin-name", required=True, help="Name of the new plugin")
@click.option("--dry-run", is_flag=True, help="Do not commit or open a pull request")
@settings_option
def placeholder(
    output_path: Path,
    plugin_type: str,
    plugin_name: str,
    dry_run: bool,
    settings: Path | None,
) -> None:
    """Add an empty release index for a new plugin so links to it resolve."""
    if plugin_type not in PLACEHOLDER_PLUGIN_TYPES:
        click.echo(
            _error(f"{plugin_type} is not supported. Supported types: {list(PLACEHOLDER_PLUGIN_TYPES)}"),
            err=True,
        )
        sys.exit(1)

    config = _load_config(settings)
    _, github = _clients(config)
    docs_root = output_path / DOCS_CHECKOUT_DIR
    publisher = DocsPublisher(docs_root, github, config.docs_repo, config.docs_branch)

    try:
        publisher.clone()
        path = DocsLayout(docs_root).write_placeholder(plugin_type, plugin_name)
        click.echo(_success(f"Wrote {path}"))

        if dry_run:
            return
        url = publisher.publish(
            PLACEHOLDER_BRANCH,
            message="create an empty placeholder for new plugin",
            title="A placeholder for new plugin",
        )
        if url:
            click.echo(_success(f"Opened {url}"))
    except DocketError as e:
        click.echo(_error(str(e)), err=True)
        sys.exit(1)
    finally:
        github.close()


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
