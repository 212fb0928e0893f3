"""Google Calendar commands."""

import click
import questionary
from questionary import Style

from ..errors import CalendarError
from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_success,
    echo_sync_result,
    echo_warning,
    ensure_initialized,
    get_services,
    get_user_id,
)

# Callback route of `routine-sync serve`; the code can also be pasted here
DEFAULT_REDIRECT_URI = "http://localhost:8000/api/calendar/callback"

custom_style = Style(
    [
        ("qmark", "fg:#673ab7 bold"),
        ("question", "bold"),
        ("answer", "fg:#f44336 bold"),
        ("instruction", ""),
        ("text", ""),
    ]
)


@click.group()
@click.pass_context
def calendar(ctx):
    """Connect and sync Google Calendar.

    Put your OAuth client file (credentials.json) in the data directory,
    then run 'routine-sync calendar connect'.
    """
    ensure_initialized(ctx)


@calendar.command("auth-url")
@click.option("--redirect-uri", default=DEFAULT_REDIRECT_URI, show_default=True)
@click.pass_context
def auth_url(ctx, redirect_uri: str):
    """Print the Google consent URL."""
    services = get_services(ctx)
    try:
        click.echo(services.engine.get_auth_url(redirect_uri, state=get_user_id(ctx)))
    except CalendarError as e:
        echo_error(str(e))
        ctx.exit(1)


@calendar.command()
@click.argument("code", required=False)
@click.option("--redirect-uri", default=DEFAULT_REDIRECT_URI, show_default=True)
@click.pass_context
@async_command
async def connect(ctx, code: str | None, redirect_uri: str):
    """Link a Google account using an authorization code.

    Without CODE, prints the consent URL and asks for the code from the
    redirect.
    """
    services = get_services(ctx)
    user_id = get_user_id(ctx)

    if code is None:
        try:
            url = services.engine.get_auth_url(redirect_uri, state=user_id)
        except CalendarError as e:
            echo_error(str(e))
            ctx.exit(1)
        click.echo()
        click.echo("Open this URL and approve access:")
        click.echo(f"  {url}")
        click.echo()
        code = await questionary.text(
            "Paste the 'code' parameter from the redirect URL:",
            style=custom_style,
        ).ask_async()
        if not code:
            echo_info("Cancelled")
            return

    try:
        state = await services.engine.connect(user_id, code.strip(), redirect_uri)
    except CalendarError as e:
        echo_error(str(e))
        ctx.exit(1)

    echo_success(f"Connected Google Calendar ({state.account_email or 'unknown account'})")

    routine = await services.routines.get_active_routine(user_id)
    if routine is not None:
        sync_now = await questionary.confirm(
            f"Add events for active routine '{routine.name}' now?",
            default=True,
            style=custom_style,
        ).ask_async()
        if sync_now:
            echo_sync_result(await services.engine.sync_routine(user_id, routine))


@calendar.command()
@click.pass_context
@async_command
async def status(ctx):
    """Show connection and sync status."""
    services = get_services(ctx)
    state = await services.engine.get_connection_status(get_user_id(ctx))

    click.echo()
    if not state.is_connected:
        echo_info("Google Calendar is not connected")
        return

    click.echo(f"Account:   {state.account_email or 'unknown'}")
    click.echo(f"Token:     {'expired - reconnect required' if state.is_token_expired else 'valid'}")
    click.echo(f"Status:    {state.sync_status.value}")
    last = state.last_sync_at.strftime("%Y-%m-%d %H:%M") if state.last_sync_at else "never"
    click.echo(f"Last sync: {last}")
    if state.error_message:
        echo_warning(state.error_message)


@calendar.command()
@click.option(
    "--start",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="First date to schedule events from (default: today)",
)
@click.pass_context
@async_command
async def sync(ctx, start):
    """Recreate all events of the active routine."""
    services = get_services(ctx)
    user_id = get_user_id(ctx)

    if not await services.engine.is_connected(user_id):
        echo_error("Google Calendar is not connected")
        ctx.exit(1)

    result = await services.routines.sync_active_routine(
        user_id, start.date() if start else None
    )
    echo_sync_result(result)
    if not result.success:
        ctx.exit(1)


@calendar.command()
@click.option("--force", "-f", is_flag=True, help="Skip confirmation")
@click.pass_context
@async_command
async def disconnect(ctx, force: bool):
    """Unlink Google Calendar and forget its tokens and event mappings."""
    services = get_services(ctx)
    user_id = get_user_id(ctx)

    if not await services.engine.is_connected(user_id):
        echo_info("Google Calendar is not connected")
        return

    if not force and not click.confirm("Disconnect Google Calendar?"):
        echo_info("Cancelled")
        return

    await services.engine.disconnect(user_id)
    echo_success("Google Calendar disconnected")
