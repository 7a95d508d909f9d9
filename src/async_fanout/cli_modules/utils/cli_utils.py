"""Common CLI utility functions."""

from typing import Any

import click


def echo_success(message: str) -> None:
    """Echo a success message with consistent formatting.

    Args:
        message: Success message to display
    """
    click.echo(f"✅ {message}")


def echo_error(message: str) -> None:
    """Echo an error message with consistent formatting.

    Args:
        message: Error message to display
    """
    click.echo(f"❌ {message}", err=True)


def echo_info(message: str) -> None:
    click.echo(f"ℹ️  {message}")


def echo_event(event_type: str, data: dict[str, Any]) -> None:
    """Echo a dispatcher event to stderr."""
    details = f"{data.get('service_id')}[{data.get('index')}]"
    if "duration_ms" in data:
        details += f" {data['duration_ms']}ms"
    if "error" in data:
        details += f" error={data['error']}"
    click.echo(f"· {event_type}: {details}", err=True)
