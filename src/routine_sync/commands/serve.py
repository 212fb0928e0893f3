"""Web server command."""

import os

import click

from ..config import DATA_DIR_ENV
from .base import ensure_initialized, get_ctx_data_dir, get_services


@click.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
@click.option("--port", "-p", default=8000, type=int, help="Port to bind to (default: 8000)")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, reload: bool):
    """Start the JSON API server.

    Serves schedule, logging, statistics and calendar endpoints, including
    the OAuth callback at /api/calendar/callback.

    Examples:

        # Start on default port (8000)
        routine-sync serve

        # Expose to network (all interfaces)
        routine-sync serve --host 0.0.0.0

        # Development mode with auto-reload
        routine-sync serve --reload
    """
    ensure_initialized(ctx)

    import uvicorn

    from ..web import create_app

    click.echo()
    click.echo(click.style("Starting routine-sync API server...", fg="green"))
    click.echo()
    click.echo(f"  Local:   http://{host}:{port}")
    click.echo(f"  Docs:    http://{host}:{port}/docs")
    click.echo()
    click.echo("Press Ctrl+C to stop the server.")
    click.echo()

    if reload:
        # The reloader re-imports the factory in a subprocess
        os.environ[DATA_DIR_ENV] = str(get_ctx_data_dir(ctx))
        uvicorn.run(
            "routine_sync.web:create_app",
            host=host,
            port=port,
            reload=True,
            factory=True,
        )
        return

    app = create_app(services=get_services(ctx))
    uvicorn.run(app, host=host, port=port)
