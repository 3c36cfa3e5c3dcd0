from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from parkmate.db.models.sms_dispatches import SmsDispatch


class SmsDispatchRepo:
    @staticmethod
    async def create(session: AsyncSession, *, dispatch: SmsDispatch) -> SmsDispatch:
        session.add(dispatch)
        await session.flush()
        return dispatch

    @staticmethod
    async def list_statuses_since(
        session: AsyncSession,
        *,
        device_id: str,
        since_utc: datetime,
    ) -> list[tuple[datetime, str]]:
        stmt = (
            select(SmsDispatch.created_at, SmsDispatch.status)
            .where(
                SmsDispatch.device_id == device_id,
                SmsDispatch.created_at >= since_utc,
            )
            .order_by(SmsDispatch.created_at.asc())
        )
        result = await session.execute(stmt)
        return [(created_at, str(status)) for created_at, status in result.all()]
