"""
Shared test fixtures.

Provides a fresh BookingService per test (one active connected account,
default automation settings) and a FastAPI TestClient wired to it:
  • the app's service dependency points at the test service
  • the background monitor is replaced by a no-op
  • rate limiting is disabled

The `client` fixture runs the full lifespan so start-up and shutdown
are exercised as well.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from autobook.dependencies import get_booking_service
from autobook.main import app
from autobook.services.accounts import ConnectedAccountPool
from autobook.services.booking_service import BookingService
from tests.mocks.models import ACTIVE_ACCOUNT
from tests.mocks.services import RecordingSink


# ── Helpers ────────────────────────────────────────────────────────────────


class _NoopWorker:
    """Drop-in replacement for MonitoringWorker that does nothing."""

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass


# ── Fixtures ───────────────────────────────────────────────────────────────


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def service(sink: RecordingSink) -> BookingService:
    """BookingService with one active account, recording every notice."""
    return BookingService(accounts=ConnectedAccountPool([ACTIVE_ACCOUNT]), sink=sink)


@pytest.fixture()
def _test_env(monkeypatch, service: BookingService) -> BookingService:
    """
    Internal fixture that points the app at the test service and keeps
    the background monitor and rate limiter out of the way.
    """
    monkeypatch.setattr(service, "build_worker", lambda: _NoopWorker())
    monkeypatch.setattr("autobook.main.booking_service", service)

    # ── Disable rate limiting in tests ────────────────────────────────
    from autobook.rate_limit import limiter as _limiter
    monkeypatch.setattr(_limiter, "enabled", False)

    return service


@pytest.fixture()
def client(_test_env: BookingService) -> TestClient:
    """FastAPI TestClient backed by the test service."""
    app.dependency_overrides[get_booking_service] = lambda: _test_env

    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc

    app.dependency_overrides.clear()

