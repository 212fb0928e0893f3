"""Shared CLI utilities."""

import asyncio
from functools import wraps
from pathlib import Path

import click

from ..config import SyncSettings, get_data_dir
from ..db import get_db_path
from ..services.factory import Services, build_services


def async_command(f):
    """Decorator to run async Click commands."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))

    return wrapper


def get_user_id(ctx: click.Context) -> str:
    """User the CLI acts for (``--user`` on the root command)."""
    return ctx.find_root().obj["user_id"]


def get_ctx_data_dir(ctx: click.Context) -> Path:
    return get_data_dir(ctx.find_root().obj.get("data_dir"))


def get_services(ctx: click.Context) -> Services:
    """Build services from the root command's options."""
    obj = ctx.find_root().obj
    settings = SyncSettings().with_overrides(
        time_zone=obj.get("time_zone"),
        default_start_time=obj.get("start_time"),
    )
    return build_services(
        data_dir=obj.get("data_dir"),
        settings=settings,
        client_secrets_path=obj.get("client_secrets"),
    )


def ensure_initialized(ctx: click.Context) -> None:
    """Ensure the database is initialized."""
    db_path = get_db_path(get_ctx_data_dir(ctx))
    if not db_path.exists():
        click.echo(
            click.style("Error: ", fg="red")
            + "Project not initialized. Run 'routine-sync init' first."
        )
        ctx.exit(1)


def echo_success(message: str) -> None:
    """Print a success message."""
    click.echo(click.style("[OK] ", fg="green") + message)


def echo_error(message: str) -> None:
    """Print an error message."""
    click.echo(click.style("[ERROR] ", fg="red") + message)


def echo_info(message: str) -> None:
    """Print an info message."""
    click.echo(click.style("[INFO] ", fg="blue") + message)


def echo_warning(message: str) -> None:
    """Print a warning message."""
    click.echo(click.style("[WARN] ", fg="yellow") + message)


def echo_sync_result(result) -> None:
    """Report a SyncResult from a calendar operation."""
    if result is None:
        return
    if result.success:
        echo_success(
            f"Calendar: {result.created_count} created, {result.deleted_count} deleted"
        )
        return
    echo_warning(
        f"Calendar: {result.created_count} created, {result.deleted_count} deleted, "
        f"{len(result.errors)} error(s)"
    )
    for error in result.errors:
        click.echo(f"  - {error}")


def format_table(headers: list[str], rows: list[list[str]], padding: int = 2) -> str:
    """Format data as a simple table."""
    if not rows:
        return ""

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(str(cell)))

    lines = ["".join(h.ljust(widths[i] + padding) for i, h in enumerate(headers))]
    lines.append("".join("-" * w + " " * padding for w in widths))
    for row in rows:
        lines.append(
            "".join(str(cell).ljust(widths[i] + padding) for i, cell in enumerate(row))
        )

    return "\n".join(line.rstrip() for line in lines)
