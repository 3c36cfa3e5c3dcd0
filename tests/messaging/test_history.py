from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from parkmate.db.models.sms_dispatches import SmsDispatch
from parkmate.messaging import history as history_module
from parkmate.messaging.history import get_sms_history
from tests.fakes import FakeSession, InMemoryRegistryStore

# 2026-03-01 02:00 in Dubai (UTC+4).
NOW = datetime(2026, 2, 28, 22, 0, tzinfo=timezone.utc)


@pytest.fixture
def registry(monkeypatch) -> InMemoryRegistryStore:
    monkeypatch.setattr(
        history_module,
        "get_settings",
        lambda: SimpleNamespace(app_timezone="Asia/Dubai"),
    )
    return InMemoryRegistryStore().install(monkeypatch)


def _dispatch(registry: InMemoryRegistryStore, created_at: datetime, status: str, device_id="device-1"):
    registry.dispatches.append(
        SmsDispatch(
            id=len(registry.dispatches) + 1,
            device_id=device_id,
            villa_id="V1",
            vehicle_id=1,
            to_number="+1",
            message="m",
            status=status,
            attempts=1,
            error=None,
            trigger="manual",
            created_at=created_at,
        )
    )


@pytest.mark.asyncio
async def test_history_zero_fills_days_oldest_first(registry) -> None:
    history = await get_sms_history(FakeSession(), device_id="device-1", days=3, now_utc=NOW)

    assert [day.date for day in history] == ["2026-02-27", "2026-02-28", "2026-03-01"]
    assert all(day.successful == 0 and day.errors == 0 for day in history)


@pytest.mark.asyncio
async def test_history_buckets_by_local_day(registry) -> None:
    # 21:30 UTC on Feb 28 is already Mar 1 locally.
    _dispatch(registry, datetime(2026, 2, 28, 21, 30, tzinfo=timezone.utc), "sent")
    _dispatch(registry, datetime(2026, 2, 28, 19, 0, tzinfo=timezone.utc), "sent")
    _dispatch(registry, datetime(2026, 2, 28, 19, 5, tzinfo=timezone.utc), "failed")
    _dispatch(registry, datetime(2026, 2, 28, 19, 5, tzinfo=timezone.utc), "sent", device_id="other")
    # Before the window.
    _dispatch(registry, NOW - timedelta(days=5), "sent")

    history = await get_sms_history(FakeSession(), device_id="device-1", days=2, now_utc=NOW)

    assert [(day.date, day.successful, day.errors) for day in history] == [
        ("2026-02-28", 1, 1),
        ("2026-03-01", 1, 0),
    ]


@pytest.mark.asyncio
async def test_history_days_are_clamped(registry) -> None:
    assert len(await get_sms_history(FakeSession(), device_id="d", days=0, now_utc=NOW)) == 1
    assert len(await get_sms_history(FakeSession(), device_id="d", days=365, now_utc=NOW)) == 90
