from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import func, select

from parkmate.db.models.subscriptions import Subscription
from parkmate.db.models.trial_devices import TrialDevice
from parkmate.db.session import SessionLocal
from parkmate.subscriptions.errors import TrialAlreadyUsedError
from parkmate.subscriptions.trials import start_trial


async def _start(device_id: str, ip_fingerprint: str | None = None) -> str:
    try:
        async with SessionLocal.begin() as session:
            await start_trial(session, device_id=device_id, ip_fingerprint=ip_fingerprint)
    except TrialAlreadyUsedError:
        return "already_used"
    return "started"


@pytest.mark.asyncio
async def test_parallel_trial_starts_grant_one_trial() -> None:
    barrier = asyncio.Event()

    async def _attempt() -> str:
        await barrier.wait()
        return await _start("device-1", "fp-1")

    tasks = [asyncio.create_task(_attempt()) for _ in range(2)]
    barrier.set()
    outcomes = await asyncio.gather(*tasks)

    assert sorted(outcomes) == ["already_used", "started"]

    async with SessionLocal() as session:
        trials = await session.scalar(select(func.count()).select_from(TrialDevice))
        subscriptions = await session.scalar(
            select(func.count(Subscription.id)).where(Subscription.subscription_type == "trial")
        )
    assert trials == 1
    assert subscriptions == 1


@pytest.mark.asyncio
async def test_trial_fingerprint_blocks_second_device() -> None:
    assert await _start("device-1", "fp-1") == "started"
    assert await _start("device-2", "fp-1") == "already_used"
    assert await _start("device-3") == "started"
