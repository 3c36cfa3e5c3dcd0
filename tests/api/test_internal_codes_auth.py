from __future__ import annotations

from types import SimpleNamespace

from fastapi.testclient import TestClient

from parkmate.api.routes import internal_codes
from parkmate.main import app
from parkmate.services import internal_auth
from tests.fakes import FakeSessionFactory, InMemorySubscriptionStore

SUMMARY_URL = "/internal/activation-codes/summary"


def _settings(allowlist: str = "127.0.0.1/32") -> SimpleNamespace:
    return SimpleNamespace(
        internal_api_token="internal-secret",
        internal_api_allowlist=allowlist,
        internal_api_trusted_proxies="",
    )


def test_summary_rejects_missing_token(monkeypatch) -> None:
    monkeypatch.setattr(internal_auth, "get_settings", _settings)

    client = TestClient(app)
    response = client.get(SUMMARY_URL)

    assert response.status_code == 401
    assert response.json() == {"detail": {"code": "E_UNAUTHORIZED"}}


def test_summary_rejects_disallowed_ip(monkeypatch) -> None:
    monkeypatch.setattr(internal_auth, "get_settings", _settings)

    client = TestClient(app)
    response = client.get(
        SUMMARY_URL,
        headers={"X-Internal-Token": "internal-secret", "X-Forwarded-For": "10.0.0.25"},
    )

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


def test_summary_rejects_wrong_token(monkeypatch) -> None:
    monkeypatch.setattr(internal_auth, "get_settings", _settings)
    monkeypatch.setattr(internal_auth, "extract_client_ip", lambda request, **kwargs: "127.0.0.1")

    client = TestClient(app)
    response = client.get(SUMMARY_URL, headers={"X-Internal-Token": "wrong"})

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


def test_summary_returns_counts(monkeypatch) -> None:
    monkeypatch.setattr(internal_auth, "get_settings", _settings)
    monkeypatch.setattr(internal_auth, "extract_client_ip", lambda request, **kwargs: "127.0.0.1")
    monkeypatch.setattr(internal_codes, "SessionLocal", FakeSessionFactory())
    store = InMemorySubscriptionStore().install(monkeypatch)
    store.add_code("PK000001AA")
    store.add_code("PK000002AA", villa_count=5)

    client = TestClient(app)
    response = client.get(SUMMARY_URL, headers={"X-Internal-Token": "internal-secret"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["total"] == 2
    assert payload["used"] == 0
    assert payload["unused"] == 2
    assert payload["recent"][0] == {
        "code": "PK000002AA",
        "duration": 30,
        "villaCount": 5,
        "usedAt": None,
    }
