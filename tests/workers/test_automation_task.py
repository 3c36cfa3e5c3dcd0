from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from celery.schedules import crontab

from parkmate.db.models.automation_schedules import AutomationSchedule
from parkmate.messaging.errors import SubscriptionRequiredError
from parkmate.messaging.types import DispatchSummary, VehicleSendOutcome
from parkmate.workers.celery_app import celery_app
from parkmate.workers.tasks import automation
from tests.fakes import FakeSessionFactory, InMemoryRegistryStore

DUBAI = ZoneInfo("Asia/Dubai")
# Sunday 2026-03-01 09:00 local.
NOW = datetime(2026, 3, 1, 9, 0, 10, tzinfo=DUBAI).astimezone(timezone.utc)


def _schedule(registry: InMemoryRegistryStore, villa_id: str, **kwargs) -> AutomationSchedule:
    kwargs.setdefault("is_enabled", True)
    kwargs.setdefault("time_of_day", "09:00")
    kwargs.setdefault("days_of_week", [True] * 7)
    kwargs.setdefault("last_run_at", None)
    schedule = AutomationSchedule(
        id=len(registry.schedules) + 1,
        device_id="device-1",
        villa_id=villa_id,
        created_at=NOW,
        updated_at=NOW,
        **kwargs,
    )
    registry.schedules.append(schedule)
    return schedule


@pytest.fixture
def registry(monkeypatch) -> InMemoryRegistryStore:
    monkeypatch.setattr(automation, "SessionLocal", FakeSessionFactory())
    monkeypatch.setattr(automation, "app_zone", lambda: DUBAI)
    return InMemoryRegistryStore().install(monkeypatch)


def test_run_automation_dispatch_task_wrapper(monkeypatch) -> None:
    async def fake_async() -> dict[str, int]:
        return {"due": 2, "dispatched": 1, "skipped": 1, "sms_sent": 3, "sms_failed": 0}

    monkeypatch.setattr(automation, "run_automation_dispatch_async", fake_async)

    result = automation.run_automation_dispatch()
    assert result["sms_sent"] == 3


def test_beat_schedule_runs_every_minute_on_sms_queue() -> None:
    entry = celery_app.conf.beat_schedule["automation-dispatch-every-minute"]
    assert entry["task"] == "parkmate.workers.tasks.automation.run_automation_dispatch"
    assert entry["schedule"] == crontab(minute="*")
    assert entry["options"] == {"queue": "q_sms"}


@pytest.mark.asyncio
async def test_dispatch_runs_due_schedules_once(monkeypatch, registry) -> None:
    due = _schedule(registry, "V1")
    _schedule(registry, "V2", days_of_week=[False] * 7)
    _schedule(registry, "V3", last_run_at=NOW - timedelta(seconds=5))
    _schedule(registry, "V4", time_of_day="09:01")
    calls: list[dict] = []

    async def _fake_send(session, **kwargs) -> DispatchSummary:
        calls.append(kwargs)
        return DispatchSummary(
            villa_id=kwargs["villa_id"],
            trigger=kwargs["trigger"],
            results=[
                VehicleSendOutcome(vehicle_id=1, plate_number="A1", status="sent", attempts=1),
                VehicleSendOutcome(vehicle_id=2, plate_number="B2", status="failed", attempts=3),
            ],
        )

    monkeypatch.setattr(automation, "send_villa_sms", _fake_send)

    result = await automation.run_automation_dispatch_async(now_utc=NOW)

    assert result == {"due": 1, "dispatched": 1, "skipped": 0, "sms_sent": 1, "sms_failed": 1}
    assert [call["villa_id"] for call in calls] == ["V1"]
    assert calls[0]["trigger"] == "automation"
    assert due.last_run_at == NOW

    again = await automation.run_automation_dispatch_async(now_utc=NOW + timedelta(seconds=20))
    assert again["due"] == 0
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_dispatch_skips_villas_without_subscription(monkeypatch, registry) -> None:
    schedule = _schedule(registry, "V1")

    async def _unentitled(session, **kwargs) -> DispatchSummary:
        raise SubscriptionRequiredError

    monkeypatch.setattr(automation, "send_villa_sms", _unentitled)

    result = await automation.run_automation_dispatch_async(now_utc=NOW)

    assert result["skipped"] == 1
    assert result["dispatched"] == 0
    assert schedule.last_run_at == NOW


@pytest.mark.asyncio
async def test_dispatch_catches_up_on_a_late_tick(monkeypatch, registry) -> None:
    schedule = _schedule(registry, "V1", time_of_day="08:58")
    calls: list[str] = []

    async def _fake_send(session, **kwargs) -> DispatchSummary:
        calls.append(kwargs["villa_id"])
        return DispatchSummary(villa_id=kwargs["villa_id"], trigger=kwargs["trigger"], results=[])

    monkeypatch.setattr(automation, "send_villa_sms", _fake_send)

    result = await automation.run_automation_dispatch_async(now_utc=NOW)

    assert result["dispatched"] == 1
    assert calls == ["V1"]
    assert schedule.last_run_at == NOW
