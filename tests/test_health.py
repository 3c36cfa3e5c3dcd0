import pytest
from fastapi.testclient import TestClient

from parkmate.api.routes import health as health_routes
from parkmate.main import app


async def _ok_check() -> dict[str, str]:
    return {"status": "ok"}


def _patch_checks(monkeypatch, *, database=_ok_check, redis=_ok_check, celery=_ok_check) -> None:
    monkeypatch.setattr(health_routes, "_check_database", database)
    monkeypatch.setattr(health_routes, "_check_redis", redis)
    monkeypatch.setattr(health_routes, "_check_celery_worker", celery)


def test_health_ok(monkeypatch) -> None:
    _patch_checks(monkeypatch)

    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {
        "schemaVersion": 1,
        "status": "ok",
        "checks": {
            "database": {"status": "ok"},
            "redis": {"status": "ok"},
            "celery": {"status": "ok"},
        },
    }


def test_live_does_not_touch_dependencies() -> None:
    client = TestClient(app)
    response = client.get("/live")
    assert response.status_code == 200
    assert response.json() == {"schemaVersion": 1, "status": "live"}


def test_health_returns_503_when_dependency_failed(monkeypatch) -> None:
    async def _failed_redis() -> dict[str, str]:
        return {"status": "failed", "error": "ConnectionError"}

    _patch_checks(monkeypatch, redis=_failed_redis)

    client = TestClient(app)
    response = client.get("/health")

    assert response.status_code == 503
    payload = response.json()
    assert payload["status"] == "degraded"
    assert payload["checks"]["redis"] == {"status": "failed", "error": "ConnectionError"}
    assert payload["checks"]["database"] == {"status": "ok"}


def test_ready_reports_not_ready_when_worker_missing(monkeypatch) -> None:
    async def _failed_celery() -> dict[str, str]:
        return {"status": "failed", "error": "no workers responded to ping"}

    _patch_checks(monkeypatch, celery=_failed_celery)

    client = TestClient(app)
    response = client.get("/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "not_ready"


def test_ready_ok(monkeypatch) -> None:
    _patch_checks(monkeypatch)

    client = TestClient(app)
    response = client.get("/ready")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_database_check_reports_exception_type_only(monkeypatch) -> None:
    class _BrokenSession:
        async def __aenter__(self):
            raise OSError("password=secret")

        async def __aexit__(self, exc_type, exc, tb) -> bool:
            return False

    monkeypatch.setattr(health_routes, "SessionLocal", lambda: _BrokenSession())

    result = await health_routes._check_database()
    assert result == {"status": "failed", "error": "OSError"}


def test_celery_check_reports_exception_type_only(monkeypatch) -> None:
    class _BrokenControl:
        def inspect(self, timeout: float):
            raise RuntimeError("broker-url=redis://secret")

    monkeypatch.setattr(health_routes.celery_app, "control", _BrokenControl())

    result = health_routes._check_celery_worker_sync()
    assert result == {"status": "failed", "error": "RuntimeError"}


def test_celery_check_counts_workers(monkeypatch) -> None:
    class _Inspector:
        def ping(self):
            return {"worker@a": {"ok": "pong"}, "worker@b": {"ok": "pong"}}

    class _Control:
        def inspect(self, timeout: float):
            return _Inspector()

    monkeypatch.setattr(health_routes.celery_app, "control", _Control())

    assert health_routes._check_celery_worker_sync() == {"status": "ok", "workers": 2}
