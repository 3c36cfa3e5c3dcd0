from __future__ import annotations

from datetime import datetime, timezone

import structlog
from celery.schedules import crontab

from parkmate.db.repo.automation_repo import AutomationRepo
from parkmate.db.session import SessionLocal
from parkmate.messaging.automation import is_due
from parkmate.messaging.constants import SMS_TRIGGER_AUTOMATION
from parkmate.messaging.dispatch import send_villa_sms
from parkmate.messaging.errors import SubscriptionRequiredError
from parkmate.messaging.history import app_zone
from parkmate.registry.errors import VillaNotFoundError
from parkmate.workers.asyncio_runner import run_async_job
from parkmate.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)


async def run_automation_dispatch_async(now_utc: datetime | None = None) -> dict[str, int]:
    now_utc = now_utc or datetime.now(timezone.utc)
    zone = app_zone()
    time_of_day = now_utc.astimezone(zone).strftime("%H:%M")

    async with SessionLocal.begin() as session:
        candidates = await AutomationRepo.list_enabled_up_to_time(
            session, time_of_day=time_of_day
        )
        due_ids = [
            schedule.id for schedule in candidates if is_due(schedule, now_utc=now_utc, zone=zone)
        ]

    result = {"due": len(due_ids), "dispatched": 0, "skipped": 0, "sms_sent": 0, "sms_failed": 0}
    for schedule_id in due_ids:
        async with SessionLocal.begin() as session:
            # skip_locked: another beat tick may already own this schedule.
            schedule = await AutomationRepo.get_by_id_for_update(session, schedule_id)
            if schedule is None or not is_due(schedule, now_utc=now_utc, zone=zone):
                continue

            schedule.last_run_at = now_utc
            try:
                summary = await send_villa_sms(
                    session,
                    device_id=schedule.device_id,
                    villa_id=schedule.villa_id,
                    trigger=SMS_TRIGGER_AUTOMATION,
                    now_utc=now_utc,
                )
            except (SubscriptionRequiredError, VillaNotFoundError) as exc:
                result["skipped"] += 1
                logger.info(
                    "automation_schedule_skipped",
                    schedule_id=schedule_id,
                    device_id=schedule.device_id,
                    villa_id=schedule.villa_id,
                    reason=type(exc).__name__,
                )
                continue

        result["dispatched"] += 1
        result["sms_sent"] += summary.sent
        result["sms_failed"] += summary.failed

    logger.info("automation_dispatch_finished", time_of_day=time_of_day, **result)
    return result


@celery_app.task(name="parkmate.workers.tasks.automation.run_automation_dispatch")
def run_automation_dispatch() -> dict[str, int]:
    return run_async_job(run_automation_dispatch_async())


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
celery_app.conf.beat_schedule.update(
    {
        "automation-dispatch-every-minute": {
            "task": "parkmate.workers.tasks.automation.run_automation_dispatch",
            "schedule": crontab(minute="*"),
            "options": {"queue": "q_sms"},
        },
    }
)
