# tests/test_api.py
"""Tests for the HTTP endpoints."""

from datetime import timedelta

from fastapi import status

from tests.conftest import START_TIME

CONFESS_URL = "/api/v1/confess"


def _submit(client, **overrides):
    payload = {"sessionId": "session-1", "ciphertext": "abc", "nonce": "xyz"}
    payload.update(overrides)
    return client.post(CONFESS_URL, json=payload)


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["status"] == "ok"
    assert "timestamp" in body


def test_root_describes_service(client) -> None:
    response = client.get("/")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["name"] == "Confessional API"


def test_submit_and_read_confession(client) -> None:
    response = _submit(client)
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["id"].startswith("conf_")
    assert body["message"] == "Confession encrypted and stored securely"

    read = client.get(f"{CONFESS_URL}/{body['id']}")
    assert read.status_code == status.HTTP_200_OK
    data = read.json()
    assert data["ciphertext"] == "abc"
    assert data["nonce"] == "xyz"
    assert data["timestamp"].startswith("2024-03-10T14:30:00")


def test_submit_accepts_client_timestamp(client) -> None:
    client_time = (START_TIME - timedelta(minutes=3)).isoformat()
    confession_id = _submit(client, timestamp=client_time).json()["id"]

    data = client.get(f"{CONFESS_URL}/{confession_id}").json()
    assert data["timestamp"].startswith("2024-03-10T14:27:00")


def test_submit_missing_field_is_bad_request(client) -> None:
    response = client.post(CONFESS_URL, json={"sessionId": "session-1", "ciphertext": "abc"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Missing required fields"


def test_submit_empty_field_is_bad_request(client) -> None:
    response = _submit(client, nonce="")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "nonce" in response.json()["detail"]


def test_read_unknown_confession_is_not_found(client) -> None:
    response = client.get(f"{CONFESS_URL}/conf_missing")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Confession not found or already deleted"


def test_read_after_expiry_is_not_found(client, clock) -> None:
    confession_id = _submit(client).json()["id"]
    clock.advance(hours=72)

    response = client.get(f"{CONFESS_URL}/{confession_id}")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_delete_confession(client) -> None:
    confession_id = _submit(client).json()["id"]

    response = client.delete(f"{CONFESS_URL}/{confession_id}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"deleted": True, "message": "Confession permanently deleted"}

    assert client.get(f"{CONFESS_URL}/{confession_id}").status_code == status.HTTP_404_NOT_FOUND
    assert client.delete(f"{CONFESS_URL}/{confession_id}").status_code == status.HTTP_404_NOT_FOUND


def test_sentiment_report_shape(client) -> None:
    for ciphertext in ("a" * 10, "b" * 20, "c" * 30):
        _submit(client, ciphertext=ciphertext)

    response = client.get("/api/v1/research/sentiment")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "totalConfessions": 3,
        "averageLength": 20.0,
        "timeDistribution": {"14": 3},
        "weekdayDistribution": {"0": 3},
    }


def test_sentiment_report_when_empty(client) -> None:
    response = client.get("/api/v1/research/sentiment")
    assert response.json() == {
        "totalConfessions": 0,
        "averageLength": 0.0,
        "timeDistribution": {},
        "weekdayDistribution": {},
    }


def test_sentiment_survives_deletion(client) -> None:
    confession_id = _submit(client).json()["id"]
    client.delete(f"{CONFESS_URL}/{confession_id}")

    body = client.get("/api/v1/research/sentiment").json()
    assert body["totalConfessions"] == 1
    assert confession_id not in str(body)


def test_crisis_alert_levels(client) -> None:
    for _ in range(10):
        _submit(client)
    body = client.get("/api/v1/research/crisis-alert").json()
    assert body == {
        "riskLevel": "normal",
        "frequency": 10,
        "message": "Activity within normal parameters",
    }

    _submit(client)
    body = client.get("/api/v1/research/crisis-alert").json()
    assert body["riskLevel"] == "elevated"
    assert body["frequency"] == 11


def test_ai_respond_falls_back_without_api_key(client) -> None:
    response = client.post(
        "/api/v1/ai-respond",
        json={"confessionId": "conf_x", "sessionId": "session-1"},
    )
    assert response.status_code == status.HTTP_200_OK
    assert "Thank you for sharing" in response.json()["response"]
