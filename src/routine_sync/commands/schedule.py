"""Schedule viewing commands."""

import calendar as month_calendar
from datetime import timedelta

import click

from ..calendar.transform import estimate_duration, exercise_summary, format_duration
from ..scheduling import project_schedule, resolve_workout_for_date
from ..utils.dates import date_range, month_bounds, week_start
from .base import (
    async_command,
    echo_info,
    ensure_initialized,
    format_table,
    get_services,
    get_user_id,
)

DATE_TYPE = click.DateTime(formats=["%Y-%m-%d"])


@click.group()
@click.pass_context
def schedule(ctx):
    """Show which workout falls on which day for the active routine.

    Saturdays and Sundays are always rest days.
    """
    ensure_initialized(ctx)


async def _active_routine(ctx):
    services = get_services(ctx)
    routine = await services.routines.get_active_routine(get_user_id(ctx))
    if routine is None:
        echo_info("No active routine. Activate one with 'routine-sync routine activate'")
    return services, routine


@schedule.command()
@click.option("--date", "day", type=DATE_TYPE, help="Day to show (default: today)")
@click.pass_context
@async_command
async def today(ctx, day):
    """Show the workout for today (or --date) with its completion state."""
    services, routine = await _active_routine(ctx)
    if routine is None:
        return

    day = day.date() if day else services.settings.today()
    workout = resolve_workout_for_date(routine, day)

    click.echo()
    click.echo(click.style(f"{day.isoformat()} ({day.strftime('%A')})", bold=True))
    if workout is None:
        click.echo("Rest day")
        return

    log = await services.logs.get_log(routine.user_id, routine.id, workout.id, day)
    done = log.completed_exercises if log else set()
    progress = await services.logs.get_workout_progress(
        routine.user_id, routine.id, workout, day
    )

    click.echo(
        f"{workout.name} - {format_duration(estimate_duration(len(workout.exercises)))}"
    )
    click.echo("-" * 40)
    for ex in workout.exercises:
        mark = "[x]" if ex.id in done else "[ ]"
        click.echo(f"  {mark} {ex.name}: {ex.sets} x {ex.reps}  ({ex.id})")
    click.echo()
    click.echo(
        f"Progress: {progress.completed_count}/{progress.total_count} "
        f"({progress.percentage}%)" + (" - completed!" if progress.is_completed else "")
    )


@schedule.command()
@click.option("--date", "day", type=DATE_TYPE, help="Any day in the week (default: today)")
@click.pass_context
@async_command
async def week(ctx, day):
    """Show the Monday-to-Sunday week."""
    services, routine = await _active_routine(ctx)
    if routine is None:
        return

    monday = week_start(day.date() if day else services.settings.today())
    logs = await services.logs.get_weekly_logs(routine.user_id, monday)
    completed = {(log.workout_id, log.date) for log in logs if log.is_completed}

    rows = []
    for d in date_range(monday, monday + timedelta(days=6)):
        workout = resolve_workout_for_date(routine, d)
        if workout is None:
            rows.append([d.isoformat(), d.strftime("%a"), "Rest", "", ""])
            continue
        rows.append([
            d.isoformat(),
            d.strftime("%a"),
            workout.name,
            exercise_summary(workout.exercises),
            "done" if (workout.id, d) in completed else "",
        ])

    click.echo()
    click.echo(format_table(["Date", "Day", "Workout", "Exercises", "Status"], rows))


@schedule.command()
@click.option("--year", type=int, help="Year (default: current)")
@click.option("--month", type=click.IntRange(1, 12), help="Month (default: current)")
@click.pass_context
@async_command
async def month(ctx, year: int | None, month: int | None):
    """List every scheduled workout in a month."""
    services, routine = await _active_routine(ctx)
    if routine is None:
        return

    today = services.settings.today()
    year = year or today.year
    month = month or today.month
    first, last = month_bounds(year, month)

    logs = await services.logs.get_monthly_logs(routine.user_id, year, month)
    completed = {(log.workout_id, log.date) for log in logs if log.is_completed}
    scheduled = project_schedule(routine, first, last)

    click.echo()
    click.echo(click.style(f"{month_calendar.month_name[month]} {year}", bold=True))
    if not scheduled:
        echo_info("No workouts scheduled this month")
        return

    rows = [
        [
            item.date.isoformat(),
            item.date.strftime("%a"),
            item.workout.name,
            "done" if (item.workout.id, item.date) in completed else "",
        ]
        for item in scheduled
    ]
    click.echo(format_table(["Date", "Day", "Workout", "Status"], rows))
