"""Routine management commands."""

import json
import uuid
from pathlib import Path

import click

from ..errors import RoutineNotFoundError
from ..models.routine import Routine
from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    echo_sync_result,
    ensure_initialized,
    format_table,
    get_services,
    get_user_id,
)


def _assign_ids(data: dict) -> dict:
    """Fill in missing workout and exercise ids and day numbers."""
    for number, workout in enumerate(data.get("workouts", []), start=1):
        workout.setdefault("id", str(uuid.uuid4()))
        workout.setdefault("day_number", number)
        for exercise in workout.get("exercises", []):
            exercise.setdefault("id", str(uuid.uuid4()))
    return data


@click.group()
@click.pass_context
def routine(ctx):
    """Manage workout routines.

    Import routines from JSON, activate one, and remove old ones. Activation
    and deletion keep a connected Google Calendar in step.
    """
    ensure_initialized(ctx)


@routine.command(name="import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--activate", "-a", is_flag=True, help="Activate the routine after import")
@click.pass_context
@async_command
async def import_routine(ctx, path: Path, activate: bool):
    """Import a routine from a JSON file.

    The file holds "name", "settings" and a "workouts" list; ids are
    generated where missing.
    """
    services = get_services(ctx)
    user_id = get_user_id(ctx)

    try:
        data = _assign_ids(json.loads(path.read_text(encoding="utf-8")))
        data["user_id"] = user_id
        data.pop("id", None)
        new_routine = Routine.from_dict(data)
    except (ValueError, KeyError, TypeError) as e:
        echo_error(f"Invalid routine file: {e}")
        ctx.exit(1)

    await services.routines.create_routine(new_routine)
    echo_success(f"Imported routine '{new_routine.name}' ({new_routine.id})")

    if activate:
        change = await services.routines.activate_routine(user_id, new_routine.id)
        echo_success(f"Routine '{change.routine.name}' is now active")
        echo_sync_result(change.sync)


@routine.command(name="list")
@click.pass_context
@async_command
async def list_routines(ctx):
    """List your routines."""
    services = get_services(ctx)
    routines = await services.routines.list_routines(get_user_id(ctx))

    if not routines:
        echo_info("No routines found. Import one with 'routine-sync routine import'")
        return

    headers = ["ID", "Name", "Workouts", "Weeks", "Active", "Created"]
    rows = []
    for r in routines:
        created = r.created_at.strftime("%Y-%m-%d") if r.created_at else "N/A"
        rows.append([
            r.id,
            r.name[:30] + "..." if len(r.name) > 30 else r.name,
            str(len(r.workouts)),
            str(r.settings.duration_weeks),
            "*" if r.is_active else "",
            created,
        ])

    click.echo()
    click.echo(format_table(headers, rows))
    click.echo()
    click.echo(f"Total: {len(routines)} routine(s)")


@routine.command()
@click.argument("routine_id")
@click.pass_context
@async_command
async def show(ctx, routine_id: str):
    """Show a routine's workouts and exercises."""
    services = get_services(ctx)
    try:
        r = await services.routines.get_routine(get_user_id(ctx), routine_id)
    except RoutineNotFoundError as e:
        echo_error(str(e))
        ctx.exit(1)

    click.echo()
    click.echo("=" * 60)
    click.echo(f"Routine: {r.name}{' (active)' if r.is_active else ''}")
    click.echo("=" * 60)
    click.echo(
        f"{r.settings.duration_weeks} weeks, {r.settings.workouts_per_week} workouts/week, "
        f"{r.settings.split_type.value}"
    )
    if r.settings.additional_request:
        click.echo(f"Note: {r.settings.additional_request}")

    for workout in r.workouts:
        click.echo()
        click.echo(click.style(f"Day {workout.day_number}: {workout.name}", bold=True))
        for ex in workout.exercises:
            click.echo(f"  - {ex.name}: {ex.sets} x {ex.reps} ({ex.muscle_group.value})")


@routine.command()
@click.argument("routine_id")
@click.option(
    "--start",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="First date to schedule events from (default: today)",
)
@click.pass_context
@async_command
async def activate(ctx, routine_id: str, start):
    """Activate a routine (deactivates any other)."""
    services = get_services(ctx)
    try:
        change = await services.routines.activate_routine(
            get_user_id(ctx), routine_id, start.date() if start else None
        )
    except RoutineNotFoundError as e:
        echo_error(str(e))
        ctx.exit(1)

    echo_success(f"Routine '{change.routine.name}' is now active")
    echo_sync_result(change.sync)


@routine.command()
@click.argument("routine_id")
@click.pass_context
@async_command
async def deactivate(ctx, routine_id: str):
    """Deactivate a routine and remove its calendar events."""
    services = get_services(ctx)
    try:
        change = await services.routines.deactivate_routine(get_user_id(ctx), routine_id)
    except RoutineNotFoundError as e:
        echo_error(str(e))
        ctx.exit(1)

    echo_success(f"Routine '{change.routine.name}' deactivated")
    echo_sync_result(change.sync)


@routine.command()
@click.argument("routine_id")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
@click.pass_context
@async_command
async def delete(ctx, routine_id: str, force: bool):
    """Delete a routine with its logs and calendar events."""
    services = get_services(ctx)
    user_id = get_user_id(ctx)
    try:
        r = await services.routines.get_routine(user_id, routine_id)
    except RoutineNotFoundError as e:
        echo_error(str(e))
        ctx.exit(1)

    if not force:
        click.echo(f"Routine: {r.name}")
        if not click.confirm("Are you sure you want to delete this routine and its logs?"):
            echo_info("Cancelled")
            return

    change = await services.routines.delete_routine(user_id, routine_id)
    echo_success(f"Routine {routine_id} deleted")
    echo_sync_result(change.sync)
