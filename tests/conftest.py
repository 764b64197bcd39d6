"""Pytest configuration for tests."""

from datetime import datetime, timedelta, timezone

import pytest

from app.config import Settings
from app.directory.store import JsonProfileStore
from app.main import create_application

from tests.factories import ADMIN


@pytest.fixture(scope="session")
def anyio_backend():
    """Configure anyio to use only asyncio backend."""
    return "asyncio"

@pytest.fixture
def data_path(tmp_path):
    return tmp_path / "data" / "profiles.json"

@pytest.fixture
def settings(tmp_path, data_path):
    return Settings(
        data_path=str(data_path),
        site_settings_path=str(tmp_path / "site.yaml"),
        admin_email=ADMIN[0],
        admin_password=ADMIN[1],
    )

@pytest.fixture
def test_app(settings):
    return create_application(settings)

class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start=None):
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value

@pytest.fixture
def store(data_path):
    return JsonProfileStore(data_path, clock=StepClock())
