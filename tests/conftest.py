"""Pytest configuration and fixtures."""

import json
from datetime import datetime

import httplib2
import pytest
import pytest_asyncio

from routine_sync.calendar.client import AuthorizedAccount, GoogleCalendarClient
from routine_sync.calendar.sync import CalendarSyncEngine
from routine_sync.config import SyncSettings
from routine_sync.db import CalendarTokenRepository, init_db
from routine_sync.errors import CalendarAPIError, CalendarAuthError
from routine_sync.models.calendar import CalendarToken
from routine_sync.models.routine import (
    Exercise,
    MuscleGroup,
    Routine,
    RoutineSettings,
    SplitType,
    Workout,
)
from routine_sync.services.factory import build_services

USER_ID = "user-1"


class FakeCalendarClient:
    """In-memory CalendarClient that records every call."""

    def __init__(self):
        self.events: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self.fail_create_on: set[str] = set()  # event dates ("YYYY-MM-DD")
        self.fail_delete_on: set[str] = set()  # event ids
        self.fail_get = False
        self._next_id = 0

    async def create_event(self, body: dict) -> str:
        self.calls.append(("create", body))
        if body["start"]["dateTime"][:10] in self.fail_create_on:
            raise CalendarAPIError("Failed to create event: quota exceeded", status=403)
        self._next_id += 1
        event_id = f"evt-{self._next_id}"
        self.events[event_id] = {"id": event_id, **body}
        return event_id

    async def get_event(self, event_id: str) -> dict:
        self.calls.append(("get", event_id))
        if self.fail_get or event_id not in self.events:
            raise CalendarAPIError(f"Failed to get event: {event_id}", status=404)
        return dict(self.events[event_id])

    async def delete_event(self, event_id: str) -> None:
        self.calls.append(("delete", event_id))
        if event_id in self.fail_delete_on:
            raise CalendarAPIError("Failed to delete event: backend error", status=500)
        # Already-deleted events are not an error
        self.events.pop(event_id, None)

    async def patch_event_title_and_color(
        self, event_id: str, title: str, color_id: str | None
    ) -> dict:
        self.calls.append(("patch", event_id, title, color_id))
        event = self.events[event_id]
        event["summary"] = title
        if color_id is None:
            event.pop("colorId", None)
        else:
            event["colorId"] = color_id
        return dict(event)

    def calls_of(self, kind: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == kind]


class _OfflineRequest:
    def execute(self):
        raise httplib2.ServerNotFoundError("Unable to find the server at www.googleapis.com")


class _OfflineEvents:
    def insert(self, **kwargs):
        return _OfflineRequest()

    def get(self, **kwargs):
        return _OfflineRequest()

    def patch(self, **kwargs):
        return _OfflineRequest()

    def delete(self, **kwargs):
        return _OfflineRequest()


class OfflineService:
    """Calendar API resource whose every request fails DNS lookup."""

    def events(self):
        return _OfflineEvents()


class FakeAuthProvider:
    """CalendarAuthProvider that accepts the code "good-code" only."""

    def __init__(self):
        self.revoked: list[str] = []
        self.fail_revoke = False

    def get_auth_url(self, redirect_uri: str, state: str | None = None) -> str:
        return f"https://accounts.example/auth?redirect_uri={redirect_uri}&state={state}"

    async def exchange_code_for_tokens(self, code: str, redirect_uri: str) -> AuthorizedAccount:
        if code != "good-code":
            raise CalendarAuthError("Failed to exchange authorization code: invalid_grant")
        return AuthorizedAccount(
            credentials=json.dumps({"token": "access", "refresh_token": "refresh"}),
            account_email="lifter@example.com",
            token_expiry=None,
        )

    async def revoke(self, token: CalendarToken) -> None:
        if self.fail_revoke:
            raise CalendarAPIError("Failed to revoke token")
        self.revoked.append(token.user_id)


@pytest.fixture
def settings():
    """Sync settings with a fixed zone and start time."""
    return SyncSettings(time_zone="Asia/Seoul", default_start_time="09:00")


@pytest_asyncio.fixture
async def temp_db_path(tmp_path):
    """Create an initialized temporary database."""
    db_path = tmp_path / "test.db"
    await init_db(db_path)
    return db_path


@pytest.fixture
def fake_client():
    return FakeCalendarClient()


@pytest.fixture
def fake_auth():
    return FakeAuthProvider()


@pytest.fixture
def client_factory(fake_client):
    """Factory handing out the shared fake client."""

    async def factory(token):
        return fake_client

    return factory


@pytest.fixture
def engine(temp_db_path, fake_auth, client_factory, settings):
    """Sync engine wired to the fake calendar."""
    return CalendarSyncEngine(
        db_path=temp_db_path,
        auth_provider=fake_auth,
        client_factory=client_factory,
        settings=settings,
    )


@pytest.fixture
def services(tmp_path, temp_db_path, fake_auth, client_factory, settings):
    """Full service graph wired to the fake calendar."""
    return build_services(
        data_dir=tmp_path,
        settings=settings,
        db_path=temp_db_path,
        auth_provider=fake_auth,
        client_factory=client_factory,
    )


@pytest.fixture
def offline_client():
    """Real GoogleCalendarClient with no network."""
    client = GoogleCalendarClient(credentials=None)
    client._service = OfflineService()
    return client


@pytest.fixture
def user_id():
    return USER_ID


@pytest.fixture
def connect_user(temp_db_path):
    """Store a calendar token so the user counts as connected."""

    async def connect(user_id: str = USER_ID, **token_fields) -> CalendarToken:
        token = CalendarToken(
            user_id=user_id,
            credentials=json.dumps({"token": "access", "refresh_token": "refresh"}),
            account_email="lifter@example.com",
            **token_fields,
        )
        await CalendarTokenRepository(temp_db_path).upsert(token)
        return token

    return connect


def make_workout(workout_id: str, day_number: int, name: str, exercises) -> Workout:
    return Workout(
        id=workout_id,
        day_number=day_number,
        name=name,
        exercises=[
            Exercise(id=ex_id, name=ex_name, sets=3, reps="8-10", muscle_group=group)
            for ex_id, ex_name, group in exercises
        ],
    )


@pytest.fixture
def sample_routine():
    """Three-workout routine created on Monday 2024-01-01."""
    return Routine(
        user_id=USER_ID,
        name="3분할",
        settings=RoutineSettings(
            duration_weeks=1,
            workouts_per_week=3,
            split_type=SplitType.PUSH_PULL_LEGS,
        ),
        workouts=[
            make_workout(
                "w-chest",
                1,
                "Chest",
                [
                    ("e-bench", "벤치프레스", MuscleGroup.CHEST),
                    ("e-fly", "덤벨 플라이", MuscleGroup.CHEST),
                ],
            ),
            make_workout(
                "w-back",
                2,
                "Back",
                [
                    ("e-row", "바벨 로우", MuscleGroup.BACK),
                    ("e-pullup", "풀업", MuscleGroup.BACK),
                    ("e-curl", "바벨 컬", MuscleGroup.ARMS),
                ],
            ),
            make_workout(
                "w-legs",
                3,
                "Legs",
                [
                    ("e-squat", "스쿼트", MuscleGroup.LEGS),
                    ("e-lunge", "런지", MuscleGroup.LEGS),
                ],
            ),
        ],
        created_at=datetime(2024, 1, 1, 8, 0),
    )
