"""Wire repositories, the sync engine and services together."""

from dataclasses import dataclass
from pathlib import Path

from ..calendar.client import CalendarAuthProvider, ClientFactory, GoogleOAuthProvider
from ..calendar.sync import CalendarSyncEngine
from ..config import SyncSettings, get_client_secrets_path, get_data_dir
from ..db.engine import get_db_path
from ..db.repositories import RoutineRepository
from .progress_stats import ProgressService
from .routines import RoutineService
from .tracker import WorkoutTracker
from .workout_logs import WorkoutLogService


@dataclass
class Services:
    settings: SyncSettings
    db_path: Path
    engine: CalendarSyncEngine
    routines: RoutineService
    logs: WorkoutLogService
    tracker: WorkoutTracker
    progress: ProgressService


def build_services(
    data_dir: Path | None = None,
    settings: SyncSettings | None = None,
    db_path: Path | None = None,
    client_secrets_path: Path | None = None,
    auth_provider: CalendarAuthProvider | None = None,
    client_factory: ClientFactory | None = None,
) -> Services:
    """Build the service graph for one data directory.

    Google OAuth is used unless ``auth_provider``/``client_factory`` are given.
    """
    settings = settings or SyncSettings()
    data_dir = get_data_dir(data_dir)
    db_path = db_path or get_db_path(data_dir)

    if auth_provider is None:
        auth_provider = GoogleOAuthProvider(
            client_secrets_path or get_client_secrets_path(data_dir)
        )

    engine = CalendarSyncEngine(
        db_path=db_path,
        auth_provider=auth_provider,
        client_factory=client_factory,
        settings=settings,
    )
    logs = WorkoutLogService(db_path, settings)
    return Services(
        settings=settings,
        db_path=db_path,
        engine=engine,
        routines=RoutineService(engine, db_path, RoutineRepository(db_path)),
        logs=logs,
        tracker=WorkoutTracker(logs, engine),
        progress=ProgressService(logs),
    )
