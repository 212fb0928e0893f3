"""Initialize project command."""

import click

from ..config import CLIENT_SECRETS_FILENAME
from ..db import get_db_path, init_db
from .base import async_command, echo_info, echo_success, echo_warning, get_ctx_data_dir


@click.command()
@click.pass_context
@async_command
async def init(ctx: click.Context):
    """Initialize the routine-sync data directory and database.

    This creates the data directory and the SQLite schema for routines,
    workout logs and calendar sync state.
    """
    data_dir = get_ctx_data_dir(ctx)
    db_path = get_db_path(data_dir)

    echo_info(f"Initializing routine-sync in {data_dir}")

    await init_db(db_path)
    echo_success("Database initialized")

    if not (data_dir / CLIENT_SECRETS_FILENAME).exists():
        echo_warning(
            f"No {CLIENT_SECRETS_FILENAME} in {data_dir}; "
            "Google Calendar sync stays unavailable until you add one."
        )

    click.echo()
    click.echo("routine-sync is ready to use!")
    click.echo()
    click.echo("Next steps:")
    click.echo("  1. Import a routine:")
    click.echo("     routine-sync routine import routine.json")
    click.echo()
    click.echo("  2. Activate it and check today's workout:")
    click.echo("     routine-sync routine activate <routine-id>")
    click.echo("     routine-sync schedule today")
    click.echo()
    click.echo("  3. Connect Google Calendar (optional):")
    click.echo("     routine-sync calendar connect")
