"""Pytest configuration for integration tests."""

import json
import os
from pathlib import Path

import pytest
from google.oauth2.credentials import Credentials

from routine_sync.config import SCOPES

TOKEN_ENV = "ROUTINE_SYNC_TEST_TOKEN"


# Mark all tests in this directory as integration tests
def pytest_collection_modifyitems(items):
    """Add integration marker to all tests in this directory."""
    for item in items:
        if "integration_tests" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def google_credentials():
    """Authorized-user credentials for a throwaway Google account.

    Points at a JSON file produced by ``Credentials.to_json()``; the tests
    are skipped when it is not configured.
    """
    path = os.environ.get(TOKEN_ENV)
    if not path:
        pytest.skip(f"{TOKEN_ENV} not set")
    info = json.loads(Path(path).read_text(encoding="utf-8"))
    return Credentials.from_authorized_user_info(info, SCOPES)
