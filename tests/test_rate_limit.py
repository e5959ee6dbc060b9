# tests/test_rate_limit.py
"""Tests for per-client rate limiting of the API."""

import pytest
from fastapi import status

from confessional.core.rate_limit import RATE_LIMIT_MESSAGE, api_rate_limit, limiter
from confessional.core.settings import settings


@pytest.fixture()
def small_allowance(monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_requests", 2)
    monkeypatch.setattr(settings, "rate_limit_window_seconds", 60)


def test_allowance_follows_settings(monkeypatch) -> None:
    assert api_rate_limit() == "100/900 seconds"

    monkeypatch.setattr(settings, "rate_limit_requests", 5)
    monkeypatch.setattr(settings, "rate_limit_window_seconds", 30)
    assert api_rate_limit() == "5/30 seconds"


def test_limiter_is_attached_to_app(app) -> None:
    assert app.state.limiter is limiter


def test_excess_requests_are_rejected(client, small_allowance) -> None:
    assert client.get("/api/v1/research/sentiment").status_code == status.HTTP_200_OK
    assert client.get("/api/v1/research/sentiment").status_code == status.HTTP_200_OK

    response = client.get("/api/v1/research/sentiment")
    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert response.json() == {"detail": RATE_LIMIT_MESSAGE}


def test_api_routes_share_one_allowance(client, small_allowance) -> None:
    payload = {"sessionId": "session-1", "ciphertext": "abc", "nonce": "xyz"}
    assert client.post("/api/v1/confess", json=payload).status_code == status.HTTP_200_OK
    assert client.get("/api/v1/research/crisis-alert").status_code == status.HTTP_200_OK

    response = client.post("/api/v1/ai-respond", json={})
    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS


def test_health_and_root_are_not_limited(client, small_allowance) -> None:
    for _ in range(5):
        assert client.get("/health").status_code == status.HTTP_200_OK
        assert client.get("/").status_code == status.HTTP_200_OK


def test_reset_restores_allowance(client, small_allowance) -> None:
    for _ in range(3):
        client.get("/api/v1/research/sentiment")
    assert client.get("/api/v1/research/sentiment").status_code == (
        status.HTTP_429_TOO_MANY_REQUESTS
    )

    limiter.reset()
    assert client.get("/api/v1/research/sentiment").status_code == status.HTTP_200_OK
