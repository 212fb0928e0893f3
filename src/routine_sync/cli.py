"""CLI entry point for routine-sync."""

import logging
from pathlib import Path

import click

from .commands import calendar, init, log, routine, schedule, serve, stats
from .config import DATA_DIR_ENV


@click.group()
@click.version_option(version="0.1.0", prog_name="routine-sync")
@click.option("--user", "-u", "user_id", default="local", show_default=True, help="User to act for")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar=DATA_DIR_ENV,
    help="Directory holding the database and credentials.json",
)
@click.option("--time-zone", help="IANA time zone for calendar events (default: Asia/Seoul)")
@click.option("--start-time", help="Workout start time as HH:MM (default: 09:00)")
@click.option(
    "--client-secrets",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Google OAuth client secrets file (default: <data-dir>/credentials.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Log calendar and storage activity")
@click.pass_context
def main(ctx, user_id, data_dir, time_zone, start_time, client_secrets, verbose):
    """routine-sync: cyclic workout schedules with Google Calendar sync.

    Routines cycle through their workouts on weekdays; Saturdays and Sundays
    are rest days. Completing a workout marks its calendar event done.

    Example usage:

        # Initialize the project
        routine-sync init

        # Import and activate a routine
        routine-sync routine import routine.json --activate

        # Check and log today's workout
        routine-sync schedule today
        routine-sync log toggle <exercise-id>

        # Connect Google Calendar
        routine-sync calendar connect
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj.update(
        user_id=user_id,
        data_dir=data_dir,
        time_zone=time_zone,
        start_time=start_time,
        client_secrets=client_secrets,
    )


# Register commands
main.add_command(init)
main.add_command(routine)
main.add_command(schedule)
main.add_command(log)
main.add_command(stats)
main.add_command(calendar)
main.add_command(serve)


def run():
    """Run the CLI."""
    main(obj={})


if __name__ == "__main__":
    run()
