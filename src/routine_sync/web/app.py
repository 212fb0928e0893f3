"""FastAPI application for the routine-sync API."""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from ..db.engine import init_db
from ..services.factory import Services, build_services
from .routers import calendar, logs, routines, schedule, stats


def create_app(data_dir: Path | None = None, services: Services | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        data_dir: Data directory used when ``services`` is not given
        services: Pre-built service graph (tests pass one with a fake calendar)
    """
    services = services or build_services(data_dir=data_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler - runs on startup and shutdown."""
        await init_db(services.db_path)
        yield
        # Let queued log writes land before the loop goes away
        await services.logs.flush()

    app = FastAPI(
        title="routine-sync",
        description="Workout scheduling and Google Calendar sync",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services

    app.include_router(routines.router)
    app.include_router(schedule.router)
    app.include_router(logs.router)
    app.include_router(stats.router)
    app.include_router(calendar.router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "version": "0.1.0"}

    return app
