from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from parkmate.db.models.trial_devices import TrialDevice


class TrialsRepo:
    @staticmethod
    async def get_by_device_id(session: AsyncSession, device_id: str) -> TrialDevice | None:
        return await session.get(TrialDevice, device_id)

    @staticmethod
    async def get_by_ip_fingerprint(
        session: AsyncSession, ip_fingerprint: str
    ) -> TrialDevice | None:
        stmt = select(TrialDevice).where(
            TrialDevice.ip_fingerprint == ip_fingerprint,
            TrialDevice.has_used_trial.is_(True),
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def create(session: AsyncSession, *, trial_device: TrialDevice) -> TrialDevice:
        session.add(trial_device)
        await session.flush()
        return trial_device
