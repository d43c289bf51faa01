"""Shared pytest fixtures for caddy tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest
from fastapi.testclient import TestClient

from puregolf.app import app
from puregolf.caddy.models import HistoricalShot, SwingFlaw
from puregolf.caddy.service import CaddyService, get_caddy_service
from puregolf.caddy.store import InMemoryHistoricalStore
from puregolf.config import reset_settings_cache

BASE_DATE = datetime(2026, 9, 1, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def make_shot() -> Callable[..., HistoricalShot]:
    counter = {"value": 0}

    def _make(
        club: str = "7-Iron",
        intended: float = 150.0,
        actual: float = 150.0,
        lie: str = "fairway",
        result: str = "good",
        date: datetime | None = None,
    ) -> HistoricalShot:
        counter["value"] += 1
        return HistoricalShot(
            club=club,
            intended_distance=intended,
            actual_distance=actual,
            lie_type=lie,
            result=result,
            date=date or BASE_DATE + timedelta(minutes=counter["value"]),
        )

    return _make


@pytest.fixture
def make_flaw() -> Callable[..., SwingFlaw]:
    def _make(code: str, severity: int = 2, days: int = 0) -> SwingFlaw:
        return SwingFlaw(
            flaw_code=code,
            severity=severity,
            frequency=1.0,
            date=BASE_DATE + timedelta(days=days),
        )

    return _make


@pytest.fixture
def store() -> InMemoryHistoricalStore:
    return InMemoryHistoricalStore()


@pytest.fixture
def service(store: InMemoryHistoricalStore) -> CaddyService:
    return CaddyService(store)


@pytest.fixture
def client(service: CaddyService):
    app.dependency_overrides[get_caddy_service] = lambda: service
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_caddy_service, None)
