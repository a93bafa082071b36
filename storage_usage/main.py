"""
Storage Usage Exporter CLI

Main entry point for the command-line interface.
"""

import logging
import sys
from typing import List, Optional

import click
from rich.console import Console

from .core.aws_client import AWSClient
from .core.config import (
    DEFAULT_BOOTSTRAP_REGION,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_METRICS_PORT,
    DEFAULT_REGION_CACHE_PATH,
    DEFAULT_REPORT_PATH,
    ExporterConfig,
    env_var,
)
from .core.dispatcher import BoundedDispatcher
from .core.exceptions import (
    AWSClientError,
    ConfigurationError,
    DiscoveryError,
    PartialFailure,
    ReportWriteError,
)
from .core.logging import setup_logging
from .core.provider import StorageProvider
from .core.region_cache import RegionDirectory
from .metrics import MetricsPublisher, create_app, serve
from .reporters.cli_reporter import CLIReporter
from .reporters.json_reporter import JSONReporter
from .reporters.report_builder import build_report

console = Console()
logger = logging.getLogger(__name__)


def validate_regions(ctx, param, value: Optional[str]) -> Optional[List[str]]:
    """Validate and parse comma-separated region list."""
    if value is None:
        return None
    regions = [r.strip() for r in value.split(",") if r.strip()]
    if not regions:
        raise click.BadParameter("No valid regions specified")
    return list(dict.fromkeys(regions))


def profile_option(f):
    return click.option(
        "--profile",
        "-p",
        default=None,
        envvar=env_var("profile"),
        help="AWS profile name from ~/.aws/credentials",
    )(f)


def cache_options(f):
    f = click.option(
        "--cache-file",
        default=DEFAULT_REGION_CACHE_PATH,
        show_default=True,
        envvar=env_var("region_cache_path"),
        help="Region cache file",
    )(f)
    f = click.option(
        "--bootstrap-region",
        default=DEFAULT_BOOTSTRAP_REGION,
        show_default=True,
        envvar=env_var("bootstrap_region"),
        help="Region used to list all other regions",
    )(f)
    return f


def logging_options(f):
    f = click.option(
        "--log-level",
        default="INFO",
        show_default=True,
        envvar=env_var("log_level"),
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
        help="Log verbosity",
    )(f)
    f = click.option(
        "--log-file",
        default=None,
        envvar=env_var("log_file"),
        help="Also write logs to this file",
    )(f)
    return f


@click.group()
@click.version_option(version="0.1.0", prog_name="storage-usage")
def cli():
    """
    Storage Usage Exporter

    Inventories EBS volumes and snapshots across every region of an AWS
    account, reports usage largest-first and exposes it as Prometheus
    metrics.
    """
    pass


@cli.command("scan")
@profile_option
@cache_options
@logging_options
@click.option(
    "--regions",
    callback=validate_regions,
    help="Comma-separated regions to scan instead of the resolved region list",
)
@click.option(
    "--refresh-regions",
    is_flag=True,
    help="Ignore the region cache and list regions from AWS",
)
@click.option(
    "--output",
    "-o",
    default=DEFAULT_REPORT_PATH,
    show_default=True,
    envvar=env_var("report_path"),
    help="JSON report path (overwritten on every run)",
)
@click.option(
    "--max-concurrency",
    default=DEFAULT_MAX_CONCURRENCY,
    show_default=True,
    type=int,
    envvar=env_var("max_concurrency"),
    help="Maximum in-flight AWS discovery calls",
)
@click.option(
    "--max-retries",
    default=3,
    show_default=True,
    type=int,
    envvar=env_var("max_retries"),
    help="Retries after the first attempt of each AWS call",
)
@click.option(
    "--timeout",
    default=30,
    show_default=True,
    type=int,
    envvar=env_var("timeout"),
    help="Deadline per AWS call, in seconds",
)
@click.option(
    "--host",
    default="0.0.0.0",
    show_default=True,
    envvar=env_var("metrics_host"),
    help="Metrics endpoint bind address",
)
@click.option(
    "--port",
    default=DEFAULT_METRICS_PORT,
    show_default=True,
    type=int,
    envvar=env_var("metrics_port"),
    help="Metrics endpoint port",
)
@click.option(
    "--serve/--no-serve",
    "keep_serving",
    default=True,
    show_default=True,
    help="Serve /metrics after the report is written",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Exit with an error if any region failed",
)
def scan(
    profile: Optional[str],
    cache_file: str,
    bootstrap_region: str,
    log_level: str,
    log_file: Optional[str],
    regions: Optional[List[str]],
    refresh_regions: bool,
    output: str,
    max_concurrency: int,
    max_retries: int,
    timeout: int,
    host: str,
    port: int,
    keep_serving: bool,
    strict: bool,
):
    """
    Aggregate volume and snapshot usage across regions.

    Examples:

        # Scan every region, write storage.json, serve :8080/metrics
        storage-usage scan

        # One-shot report without the metrics server
        storage-usage scan --no-serve -o report.json

        # Scan two regions with at most 10 concurrent AWS calls
        storage-usage scan --regions us-east-1,eu-west-1 --max-concurrency 10
    """
    config = ExporterConfig(
        profile=profile,
        bootstrap_region=bootstrap_region,
        region_cache_path=cache_file,
        report_path=output,
        max_concurrency=max_concurrency,
        max_retries=max_retries,
        timeout=timeout,
        metrics_host=host,
        metrics_port=port,
        log_level=log_level,
        log_file=log_file,
    )
    cli_reporter = CLIReporter(console)

    try:
        config.validate()
        setup_logging(level=config.log_level, log_file=config.log_file)

        provider = StorageProvider(
            profile=config.profile,
            max_retries=config.max_retries,
            timeout=config.timeout,
        )

        if regions:
            target_regions = regions
        else:
            directory = RegionDirectory(
                provider,
                cache_path=config.region_cache_path,
                bootstrap_region=config.bootstrap_region,
            )
            target_regions = directory.resolve_regions(force_refresh=refresh_regions)

        cli_reporter.print_scanning_message(target_regions)

        def progress_callback(region: str, resource_type: str, status: str):
            if status == "error":
                console.print(f"  [yellow]Error scanning {resource_type}s: {region}[/yellow]")
            elif status == "skipped":
                console.print(f"  [yellow]Skipped {resource_type}s: {region}[/yellow]")

        dispatcher = BoundedDispatcher(
            provider,
            max_concurrency=config.max_concurrency,
            progress_callback=progress_callback,
        )
        state = dispatcher.run_aggregation(target_regions)

        rows = build_report(state.entities)
        cli_reporter.report(rows, state)

        output_file = JSONReporter(output_path=config.report_path).report(rows)

        publisher = MetricsPublisher()
        publisher.publish(state.entities, state.total_bytes)

        cli_reporter.print_completion_message(output_file)

        if strict:
            state.raise_for_errors()

        if keep_serving:
            console.print(
                f"[dim]Listening for requests on {config.metrics_host}:{config.metrics_port}/metrics...[/dim]"
            )
            try:
                serve_metrics(publisher, config)
            except OSError as e:
                cli_reporter.print_error(
                    f"Cannot serve metrics on {config.metrics_host}:{config.metrics_port}: {e}"
                )
                sys.exit(1)

    except (ConfigurationError, DiscoveryError, ReportWriteError, AWSClientError) as e:
        cli_reporter.print_error(str(e))
        sys.exit(1)
    except PartialFailure as e:
        cli_reporter.print_error(
            f"{len(e.errors)} region(s) failed: {', '.join(sorted(e.errors))}"
        )
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Scan cancelled by user.[/yellow]")
        sys.exit(130)


def serve_metrics(publisher: MetricsPublisher, config: ExporterConfig) -> None:
    """Serve the publisher's gauges until the process is stopped."""
    serve(create_app(publisher), host=config.metrics_host, port=config.metrics_port)


@cli.command("regions")
@profile_option
@cache_options
@click.option(
    "--refresh",
    is_flag=True,
    help="Ignore the region cache and list regions from AWS",
)
def list_regions(
    profile: Optional[str],
    cache_file: str,
    bootstrap_region: str,
    refresh: bool,
):
    """List the regions a scan would cover."""
    try:
        directory = RegionDirectory(
            StorageProvider(profile=profile),
            cache_path=cache_file,
            bootstrap_region=bootstrap_region,
        )
        regions = directory.resolve_regions(force_refresh=refresh)

        console.print(
            f"\n[bold]Regions ({len(regions)} total, from {directory.last_source}):[/bold]\n"
        )
        for region in regions:
            console.print(f"  • {region}")
        console.print()

    except DiscoveryError as e:
        console.print(f"\n[red bold]Error:[/red bold] {str(e)}")
        sys.exit(1)


@cli.command("validate")
@profile_option
@click.option(
    "--region",
    "-r",
    default="us-east-1",
    help="AWS region to use for validation",
)
def validate_credentials(profile: Optional[str], region: str):
    """Validate AWS credentials and show account info."""
    try:
        client = AWSClient(region=region, profile=profile)
        client.validate_credentials()
        account_id = client.get_account_id()

        console.print("\n[green bold]AWS credentials are valid![/green bold]")
        console.print(f"\n  Account ID: {account_id}")
        console.print(f"  Region: {region}")
        if profile:
            console.print(f"  Profile: {profile}")
        console.print()

    except AWSClientError as e:
        console.print(f"\n[red bold]Validation Failed:[/red bold] {str(e)}")
        sys.exit(1)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
