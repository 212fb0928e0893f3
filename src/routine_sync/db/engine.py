"""Database engine setup and initialization."""

from pathlib import Path

import aiosqlite

from ..config import DATA_DIR


def get_db_path(data_dir: Path | None = None) -> Path:
    """Get the database file path."""
    if data_dir is None:
        data_dir = DATA_DIR
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / "routine_sync.db"


async def init_db(db_path: Path | None = None) -> None:
    """Initialize the database schema."""
    if db_path is None:
        db_path = get_db_path()

    async with aiosqlite.connect(db_path) as db:
        # Routines (settings and workouts stored as JSON)
        await db.execute("""
            CREATE TABLE IF NOT EXISTS routines (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                name TEXT NOT NULL,
                settings TEXT NOT NULL,
                workouts TEXT NOT NULL DEFAULT '[]',
                is_active INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL,
                activated_at TIMESTAMP
            )
        """)

        # Per-date completion logs
        await db.execute("""
            CREATE TABLE IF NOT EXISTS workout_logs (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                routine_id TEXT NOT NULL,
                workout_id TEXT NOT NULL,
                date TEXT NOT NULL,
                completed_exercises TEXT NOT NULL DEFAULT '[]',
                is_completed INTEGER NOT NULL DEFAULT 0,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (user_id, routine_id, workout_id, date),
                FOREIGN KEY (routine_id) REFERENCES routines(id)
            )
        """)

        # Workout occurrence -> Google event
        await db.execute("""
            CREATE TABLE IF NOT EXISTS calendar_event_mappings (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                routine_id TEXT NOT NULL,
                workout_id TEXT NOT NULL,
                google_event_id TEXT NOT NULL,
                event_date TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE (workout_id, event_date)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS calendar_sync_status (
                user_id TEXT PRIMARY KEY,
                status TEXT NOT NULL DEFAULT 'idle',
                last_sync_at TIMESTAMP,
                error_message TEXT
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS calendar_tokens (
                id TEXT PRIMARY KEY,
                user_id TEXT UNIQUE NOT NULL,
                credentials TEXT NOT NULL,
                account_email TEXT,
                token_expiry TIMESTAMP,
                token_expired INTEGER NOT NULL DEFAULT 0,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Create indexes
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_routines_user ON routines(user_id)"
        )
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_workout_logs_user_date ON workout_logs(user_id, date)"
        )
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_event_mappings_routine ON calendar_event_mappings(routine_id)"
        )

        await db.commit()
