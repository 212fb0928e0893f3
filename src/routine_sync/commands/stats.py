"""Progress statistics command."""

import click

from ..services.progress_stats import motivation_message, remaining_days
from .base import async_command, ensure_initialized, format_table, get_services, get_user_id


@click.command()
@click.option("--days", default=30, show_default=True, help="Muscle group look-back window")
@click.pass_context
@async_command
async def stats(ctx, days: int):
    """Show weekly, monthly and routine progress."""
    ensure_initialized(ctx)

    services = get_services(ctx)
    user_id = get_user_id(ctx)
    today = services.settings.today()
    routine = await services.routines.get_active_routine(user_id)

    bundle = await services.progress.progress_stats(user_id, routine, today)
    weekly, monthly = bundle.weekly, bundle.monthly

    click.echo()
    click.echo(click.style(motivation_message(bundle), bold=True))
    click.echo()
    click.echo(
        f"This week:  {weekly.completion_rate}% "
        f"({weekly.completed_workouts}/{weekly.total_workouts} workouts)"
    )
    click.echo(
        f"This month: {monthly.completion_rate}% "
        f"({monthly.completed_workouts}/{monthly.total_workouts} workouts, "
        f"{monthly.workout_days} active days)"
    )
    click.echo(f"Streak:     {bundle.streak_days} day(s)")

    if routine is None:
        return

    progress = await services.progress.routine_progress(user_id, routine, today)
    click.echo()
    click.echo(click.style(f"Routine: {routine.name}", bold=True))
    click.echo(
        f"  {progress.completed_days}/{progress.total_days} workouts "
        f"({progress.completion_rate}%), {remaining_days(routine, today)} day(s) left"
    )

    groups = await services.progress.muscle_group_stats(user_id, routine, days, today)
    if groups:
        click.echo()
        rows = [
            [g.muscle_group.value, str(g.frequency), f"{g.percentage}%"] for g in groups
        ]
        click.echo(format_table(["Muscle group", "Exercises", "Share"], rows))
