from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from crowdfund.main import app
from crowdfund.service import build_service, get_service


class StepClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, tzinfo=timezone.utc)) -> None:
        self.current = start
        self.calls = 0

    def __call__(self) -> datetime:
        value = self.current + timedelta(seconds=self.calls)
        self.calls += 1
        return value


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "campaigns.db")


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def service(db_path, clock):
    return build_service(db_path, 1024, now=clock)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
