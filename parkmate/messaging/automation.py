from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, time, timedelta, timezone
from typing import Protocol
from zoneinfo import ZoneInfo

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from parkmate.db.models.automation_schedules import AutomationSchedule
from parkmate.db.repo.automation_repo import AutomationRepo
from parkmate.db.repo.villas_repo import VillasRepo
from parkmate.messaging.constants import (
    AUTOMATION_CATCH_UP_MINUTES,
    DAYS_PER_WEEK,
    DEFAULT_TIME_OF_DAY,
    TIME_OF_DAY_PATTERN,
)
from parkmate.messaging.errors import ScheduleValidationError
from parkmate.messaging.history import app_zone
from parkmate.messaging.types import ScheduleView
from parkmate.registry.errors import VillaNotFoundError

logger = structlog.get_logger(__name__)


class ScheduleLike(Protocol):
    is_enabled: bool
    time_of_day: str
    days_of_week: list[bool]
    last_run_at: datetime | None


def sunday_first_index(day: date) -> int:
    return (day.weekday() + 1) % DAYS_PER_WEEK


def parse_time_of_day(value: str) -> time:
    if not TIME_OF_DAY_PATTERN.match(value):
        raise ScheduleValidationError("time must be HH:MM")
    hours, minutes = value.split(":")
    return time(hour=int(hours), minute=int(minutes))


def validate_days_of_week(days_of_week: Sequence[bool]) -> list[bool]:
    if len(days_of_week) != DAYS_PER_WEEK:
        raise ScheduleValidationError("daysOfWeek must have 7 entries, Sunday first")
    return [bool(flag) for flag in days_of_week]


def next_run_at(
    schedule: ScheduleLike,
    *,
    now_utc: datetime,
    zone: ZoneInfo | None = None,
) -> datetime | None:
    """Next wall-clock occurrence of the schedule, in UTC.

    None when the schedule is disabled or has no weekday selected.
    """
    if not schedule.is_enabled or not any(schedule.days_of_week):
        return None

    zone = zone or app_zone()
    run_time = parse_time_of_day(schedule.time_of_day)
    now_local = now_utc.astimezone(zone)
    for offset in range(DAYS_PER_WEEK + 1):
        day = now_local.date() + timedelta(days=offset)
        if not schedule.days_of_week[sunday_first_index(day)]:
            continue
        candidate = datetime.combine(day, run_time, tzinfo=zone)
        if candidate > now_local:
            return candidate.astimezone(timezone.utc)
    return None


def is_due(
    schedule: ScheduleLike,
    *,
    now_utc: datetime,
    zone: ZoneInfo | None = None,
) -> bool:
    """True when today's slot has passed, within the catch-up window, and has not run yet."""
    if not schedule.is_enabled:
        return False

    zone = zone or app_zone()
    now_local = now_utc.astimezone(zone)
    if not schedule.days_of_week[sunday_first_index(now_local.date())]:
        return False
    run_time = parse_time_of_day(schedule.time_of_day)
    slot = datetime.combine(now_local.date(), run_time, tzinfo=zone)
    if not slot <= now_local < slot + timedelta(minutes=AUTOMATION_CATCH_UP_MINUTES):
        return False
    if schedule.last_run_at is None:
        return True

    # At most one run per slot.
    return schedule.last_run_at.astimezone(zone) < slot


def to_view(schedule: AutomationSchedule, *, now_utc: datetime) -> ScheduleView:
    return ScheduleView(
        villa_id=schedule.villa_id,
        is_enabled=schedule.is_enabled,
        time_of_day=schedule.time_of_day,
        days_of_week=list(schedule.days_of_week),
        last_run_at=schedule.last_run_at,
        next_run_at=next_run_at(schedule, now_utc=now_utc),
    )


def default_view(villa_id: str) -> ScheduleView:
    return ScheduleView(
        villa_id=villa_id,
        is_enabled=False,
        time_of_day=DEFAULT_TIME_OF_DAY,
        days_of_week=[False] * DAYS_PER_WEEK,
        last_run_at=None,
        next_run_at=None,
    )


class AutomationService:
    @staticmethod
    async def get_schedule(
        session: AsyncSession,
        *,
        device_id: str,
        villa_id: str,
        now_utc: datetime | None = None,
    ) -> ScheduleView:
        now_utc = now_utc or datetime.now(timezone.utc)
        if await VillasRepo.get(session, device_id=device_id, villa_id=villa_id) is None:
            raise VillaNotFoundError
        schedule = await AutomationRepo.get(session, device_id=device_id, villa_id=villa_id)
        if schedule is None:
            return default_view(villa_id)
        return to_view(schedule, now_utc=now_utc)

    @staticmethod
    async def put_schedule(
        session: AsyncSession,
        *,
        device_id: str,
        villa_id: str,
        is_enabled: bool,
        time_of_day: str,
        days_of_week: Sequence[bool],
        now_utc: datetime | None = None,
    ) -> ScheduleView:
        now_utc = now_utc or datetime.now(timezone.utc)
        parse_time_of_day(time_of_day)
        flags = validate_days_of_week(days_of_week)

        villa = await VillasRepo.get_for_update(session, device_id=device_id, villa_id=villa_id)
        if villa is None:
            raise VillaNotFoundError

        schedule = await AutomationRepo.get(session, device_id=device_id, villa_id=villa_id)
        if schedule is None:
            schedule = await AutomationRepo.create(
                session,
                schedule=AutomationSchedule(
                    device_id=device_id,
                    villa_id=villa_id,
                    is_enabled=is_enabled,
                    time_of_day=time_of_day,
                    days_of_week=flags,
                    last_run_at=None,
                    created_at=now_utc,
                    updated_at=now_utc,
                ),
            )
        else:
            schedule.is_enabled = is_enabled
            schedule.time_of_day = time_of_day
            schedule.days_of_week = flags
            schedule.updated_at = now_utc
            await session.flush()

        logger.info(
            "automation_schedule_saved",
            device_id=device_id,
            villa_id=villa_id,
            is_enabled=is_enabled,
        )
        return to_view(schedule, now_utc=now_utc)
