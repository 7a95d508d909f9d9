"""Command line interface for async-fanout."""

import asyncio
import json
import logging
from pathlib import Path

import click

from async_fanout.cli_modules.utils.cli_utils import (
    echo_error,
    echo_event,
    echo_info,
    echo_success,
)
from async_fanout.cli_modules.utils.results_display import display_report
from async_fanout.core.config.fanout_config import FanOutConfig, FanOutLoader
from async_fanout.core.execution.aggregator import Aggregator, Policy
from async_fanout.core.execution.result_types import AggregationReport


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
    )


def _load_config(config_file: str) -> FanOutConfig:
    """Load a fan-out file, turning load errors into CLI errors."""
    try:
        return FanOutLoader().load_from_file(config_file)
    except FileNotFoundError as e:
        raise click.ClickException(str(e)) from e
    except ValueError as e:
        raise click.ClickException(f"Invalid fan-out file {config_file}: {e}") from e


async def _execute(
    config: FanOutConfig,
    policy: Policy,
    messages: list[str],
    fallback: str,
    timeout: float | None,
    verbose: bool,
) -> AggregationReport:
    aggregator = Aggregator.with_events(echo_event) if verbose else Aggregator()
    services = config.build_services()
    aggregation = aggregator.report(policy, services, messages, fallback)
    if timeout is None:
        return await aggregation
    return await asyncio.wait_for(aggregation, timeout=timeout)


@click.group()
@click.version_option(package_name="async-fanout")
def cli() -> None:
    """Async Fan-out - dispatch service calls concurrently and aggregate them."""
    pass


@cli.command()
@click.argument("config_file", type=click.Path(dir_okay=False))
@click.option(
    "--policy",
    type=click.Choice([p.value for p in Policy]),
    default=None,
    help="Failure-handling policy (overrides config)",
)
@click.option(
    "--fallback",
    default=None,
    help="Fallback value for failed services under fail-soft (overrides config)",
)
@click.option(
    "--message",
    "messages",
    multiple=True,
    help="Message for the service at the same position (repeatable, "
    "overrides config)",
)
@click.option(
    "--output-format",
    type=click.Choice(["json", "text"]),
    default="text",
    help="Output format for results",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Deadline in seconds for the whole aggregation",
)
@click.option(
    "--detailed",
    is_flag=True,
    help="Show the outcome of every dispatched service",
)
@click.option("--verbose", is_flag=True, help="Enable debug logging and task events")
def run(
    config_file: str,
    policy: str | None,
    fallback: str | None,
    messages: tuple[str, ...],
    output_format: str,
    timeout: float | None,
    detailed: bool,
    verbose: bool,
) -> None:
    """Run a fan-out file under a failure-handling policy."""
    _configure_logging(verbose)
    config = _load_config(config_file)

    effective_policy = Policy.parse(policy) if policy else config.policy
    effective_fallback = config.fallback if fallback is None else fallback
    effective_messages = list(messages) if messages else config.messages

    if output_format == "text" and detailed:
        echo_info(
            f"Running '{config.name}' with {len(config.services)} services "
            f"({effective_policy.value})"
        )

    try:
        report = asyncio.run(
            _execute(
                config,
                effective_policy,
                effective_messages,
                effective_fallback,
                timeout,
                verbose,
            )
        )
    except TimeoutError as e:
        raise click.ClickException(
            f"Fan-out '{config.name}' timed out after {timeout} seconds"
        ) from e

    if output_format == "json":
        payload = {"name": config.name, **report.to_dict(include_outcomes=detailed)}
        click.echo(json.dumps(payload, indent=2))
        if report.error is not None:
            raise click.exceptions.Exit(1)
        return

    display_report(report, detailed)
    if report.error is not None:
        raise click.ClickException(f"Fan-out failed: {report.error}")


@cli.command()
@click.argument("config_file", type=click.Path(dir_okay=False))
def validate(config_file: str) -> None:
    """Validate a fan-out file without running it."""
    config = _load_config(config_file)

    echo_success(f"'{config.name}' is valid")
    click.echo(f"  Services: {len(config.services)}")
    click.echo(f"  Messages: {len(config.messages)}")
    click.echo(f"  Policy:   {config.policy.value}")
    if len(config.services) != len(config.messages):
        echo_error(
            "services and messages differ in length; nothing will be "
            "dispatched unless --message is given"
        )


@cli.command("list")
@click.argument(
    "directory",
    type=click.Path(file_okay=False),
    default=".",
)
def list_configs(directory: str) -> None:
    """List fan-out files found under a directory."""
    configs = FanOutLoader().list_configs(directory)
    if not configs:
        click.echo(f"No fan-out files found in: {Path(directory)}")
        return

    click.echo(f"Fan-out files ({len(configs)} found):")
    for config in configs:
        display_name = (
            f"{config.relative_path}/{config.name}"
            if config.relative_path
            else config.name
        )
        summary = f"{config.policy.value}, {len(config.services)} services"
        line = f"  {display_name} [{summary}]"
        if config.description:
            line += f": {config.description}"
        click.echo(line)


if __name__ == "__main__":
    cli()
