"""Workout logging commands."""

import click

from ..errors import PersistenceError
from ..scheduling import resolve_workout_for_date
from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    echo_warning,
    ensure_initialized,
    format_table,
    get_services,
    get_user_id,
)

DATE_TYPE = click.DateTime(formats=["%Y-%m-%d"])


@click.group()
@click.pass_context
def log(ctx):
    """Record completed exercises for the active routine.

    When Google Calendar is connected, completing or un-completing a whole
    workout updates its calendar event.
    """
    ensure_initialized(ctx)


def _echo_toggle(result) -> None:
    state = "completed" if result.log.is_completed else "in progress"
    echo_success(
        f"{len(result.log.completed_exercises)} exercise(s) done, workout {state}"
    )
    sync = result.sync
    if sync is None:
        return
    if sync.synced:
        echo_success(f"Calendar event updated: {sync.summary}")
    elif sync.error:
        echo_warning(f"Calendar not updated: {sync.error}")


async def _resolve(ctx, day):
    services = get_services(ctx)
    routine = await services.routines.get_active_routine(get_user_id(ctx))
    if routine is None:
        echo_error("No active routine")
        ctx.exit(1)
    day = day.date() if day else services.settings.today()
    return services, routine, day


@log.command()
@click.argument("exercise_id")
@click.option("--workout", "workout_id", help="Workout id (default: the one scheduled that day)")
@click.option("--date", "day", type=DATE_TYPE, help="Workout date (default: today)")
@click.pass_context
@async_command
async def toggle(ctx, exercise_id: str, workout_id: str | None, day):
    """Tick or untick one exercise."""
    services, routine, day = await _resolve(ctx, day)

    if workout_id is None:
        workout = resolve_workout_for_date(routine, day)
        if workout is None:
            echo_error(f"{day.isoformat()} is a rest day; pass --workout to log anyway")
            ctx.exit(1)
        workout_id = workout.id

    try:
        result = await services.tracker.toggle_in_routine(routine, workout_id, exercise_id, day)
    except (ValueError, PersistenceError) as e:
        echo_error(str(e))
        ctx.exit(1)

    _echo_toggle(result)


@log.command()
@click.option("--workout", "workout_id", help="Workout id (default: the one scheduled that day)")
@click.option("--date", "day", type=DATE_TYPE, help="Workout date (default: today)")
@click.pass_context
@async_command
async def complete(ctx, workout_id: str | None, day):
    """Mark every exercise of a workout done."""
    services, routine, day = await _resolve(ctx, day)

    if workout_id is None:
        workout = resolve_workout_for_date(routine, day)
        if workout is None:
            echo_error(f"{day.isoformat()} is a rest day; pass --workout to log anyway")
            ctx.exit(1)
        workout_id = workout.id

    try:
        result = await services.tracker.complete_workout(routine, workout_id, day)
    except (ValueError, PersistenceError) as e:
        echo_error(str(e))
        ctx.exit(1)

    _echo_toggle(result)


@log.command()
@click.option("--from", "start", type=DATE_TYPE, help="First date (default: today)")
@click.option("--to", "end", type=DATE_TYPE, help="Last date (default: --from)")
@click.pass_context
@async_command
async def show(ctx, start, end):
    """List workout logs in a date range."""
    services = get_services(ctx)
    user_id = get_user_id(ctx)
    start = start.date() if start else services.settings.today()
    end = end.date() if end else start

    logs = await services.logs.get_logs_in_range(user_id, start, end)
    if not logs:
        echo_info("No workout logs in this range")
        return

    routines = {r.id: r for r in await services.routines.list_routines(user_id)}
    rows = []
    for entry in logs:
        routine = routines.get(entry.routine_id)
        workout = routine.get_workout(entry.workout_id) if routine else None
        rows.append([
            entry.date.isoformat(),
            workout.name if workout else entry.workout_id,
            f"{len(entry.completed_exercises)}/{len(workout.exercises) if workout else '?'}",
            "yes" if entry.is_completed else "",
        ])

    click.echo()
    click.echo(format_table(["Date", "Workout", "Exercises", "Completed"], rows))
