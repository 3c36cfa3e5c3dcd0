from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from parkmate.core.config import get_settings
from parkmate.db.session import SessionLocal
from parkmate.workers.celery_app import celery_app

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)
SCHEMA_VERSION = 1


def _ok_check(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"status": "ok"}
    if extra:
        payload.update(extra)
    return payload


def _failed_check(component: str, error: str) -> dict[str, str]:
    logger.warning("health_check_failed", component=component, error=error)
    return {"status": "failed", "error": error}


async def _check_database() -> dict[str, Any]:
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        return _failed_check("database", type(exc).__name__)
    return _ok_check()


async def _check_redis() -> dict[str, Any]:
    redis_client = Redis.from_url(get_settings().redis_url)
    try:
        pong = await redis_client.ping()
    except (RedisError, OSError) as exc:
        return _failed_check("redis", type(exc).__name__)
    finally:
        await redis_client.aclose()

    if pong is not True:
        return _failed_check("redis", f"unexpected ping response: {pong!r}")
    return _ok_check()


def _check_celery_worker_sync() -> dict[str, Any]:
    try:
        inspector = celery_app.control.inspect(timeout=1.0)
        replies = inspector.ping() or {}
    except Exception as exc:  # broker errors vary by transport
        return _failed_check("celery", type(exc).__name__)

    if not replies:
        return _failed_check("celery", "no workers responded to ping")
    return _ok_check({"workers": len(replies)})


async def _check_celery_worker() -> dict[str, Any]:
    return await asyncio.to_thread(_check_celery_worker_sync)


async def _collect_checks() -> dict[str, dict[str, Any]]:
    database, redis, celery = await asyncio.gather(
        _check_database(),
        _check_redis(),
        _check_celery_worker(),
    )
    return {"database": database, "redis": redis, "celery": celery}


async def _report(*, ok_status: str, failed_status: str) -> JSONResponse:
    checks = await _collect_checks()
    is_ok = all(check.get("status") == "ok" for check in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if is_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "schemaVersion": SCHEMA_VERSION,
            "status": ok_status if is_ok else failed_status,
            "checks": checks,
        },
    )


@router.get("/live")
async def live() -> dict[str, Any]:
    return {"schemaVersion": SCHEMA_VERSION, "status": "live"}


@router.get("/health")
async def health() -> JSONResponse:
    return await _report(ok_status="ok", failed_status="degraded")


@router.get("/ready")
async def ready() -> JSONResponse:
    return await _report(ok_status="ready", failed_status="not_ready")
