from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from parkmate.core.config import get_settings
from parkmate.db.repo.sms_dispatch_repo import SmsDispatchRepo
from parkmate.messaging.constants import (
    DISPATCH_STATUS_SENT,
    SMS_HISTORY_DEFAULT_DAYS,
    SMS_HISTORY_MAX_DAYS,
)
from parkmate.messaging.types import SmsHistoryDay


def app_zone() -> ZoneInfo:
    return ZoneInfo(get_settings().app_timezone)


async def get_sms_history(
    session: AsyncSession,
    *,
    device_id: str,
    days: int = SMS_HISTORY_DEFAULT_DAYS,
    now_utc: datetime | None = None,
) -> list[SmsHistoryDay]:
    """Per-day sent/failed counts for the last `days` local days, oldest first."""
    now_utc = now_utc or datetime.now(timezone.utc)
    days = max(1, min(SMS_HISTORY_MAX_DAYS, int(days)))
    zone = app_zone()

    today_local = now_utc.astimezone(zone).date()
    first_day = today_local - timedelta(days=days - 1)
    since_utc = datetime.combine(first_day, time.min, tzinfo=zone).astimezone(timezone.utc)

    buckets = {
        (first_day + timedelta(days=offset)).isoformat(): SmsHistoryDay(
            date=(first_day + timedelta(days=offset)).isoformat()
        )
        for offset in range(days)
    }
    rows = await SmsDispatchRepo.list_statuses_since(
        session,
        device_id=device_id,
        since_utc=since_utc,
    )
    for created_at, status in rows:
        bucket = buckets.get(created_at.astimezone(zone).date().isoformat())
        if bucket is None:
            continue
        if status == DISPATCH_STATUS_SENT:
            bucket.successful += 1
        else:
            bucket.errors += 1

    return list(buckets.values())
