from http import HTTPStatus
from unittest import mock

import pytest
from django.db import connection as dj_conn


class DummyDbError(Exception):  # TRY002: use a custom exception in tests
    """Synthetic DB error for testing."""


@pytest.fixture
def redis_url(settings):
    settings.REDIS_URL = "redis://localhost:6379/0"


@pytest.mark.django_db
def test_health_ok(client, redis_url, realtime_registry):
    with mock.patch("config.health.redis.Redis.ping", return_value=True):
        resp = client.get("/health/")
    assert resp.status_code == HTTPStatus.OK
    data = resp.json()
    assert data["status"] == "ok"
    assert data["components"]["db"]["ok"] is True
    assert data["components"]["realtime"]["ok"] is True
    assert data["components"]["realtime"]["totalConnections"] == 0


@pytest.mark.django_db
def test_health_degraded_when_redis_fails(client, redis_url, realtime_registry):
    with mock.patch(
        "config.health.redis.Redis.ping",
        side_effect=TimeoutError("redis timeout"),  # E501: wrapped in parens
    ):
        resp = client.get("/health/")
    assert resp.status_code == HTTPStatus.SERVICE_UNAVAILABLE
    data = resp.json()
    assert data["components"]["redis"]["ok"] is False
    assert data["status"] == "degraded"


@pytest.mark.django_db
def test_health_degraded_when_db_fails(client, monkeypatch, realtime_registry):
    msg = "db down"  # EM101/TRY003: assign message to a variable

    def raise_cursor():
        raise DummyDbError(msg)

    monkeypatch.setattr(dj_conn, "cursor", raise_cursor, raising=True)
    resp = client.get("/health/")
    assert resp.status_code == HTTPStatus.SERVICE_UNAVAILABLE
    data = resp.json()
    assert data["components"]["db"]["ok"] is False


@pytest.mark.django_db
def test_health_reports_realtime_shutdown(client, redis_url, realtime_registry):
    realtime_registry.shutdown()
    with mock.patch("config.health.redis.Redis.ping", return_value=True):
        resp = client.get("/health/")
    assert resp.status_code == HTTPStatus.SERVICE_UNAVAILABLE
    assert resp.json()["components"]["realtime"]["ok"] is False
