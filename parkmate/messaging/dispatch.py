from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from contextlib import AsyncExitStack
from datetime import datetime, timezone

import httpx
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from parkmate.db.models.sms_dispatches import SmsDispatch
from parkmate.db.models.vehicles import Vehicle
from parkmate.db.models.villas import Villa
from parkmate.db.repo.sms_dispatch_repo import SmsDispatchRepo
from parkmate.db.repo.vehicles_repo import VehiclesRepo
from parkmate.db.repo.villas_repo import VillasRepo
from parkmate.messaging.constants import (
    DISPATCH_STATUS_FAILED,
    DISPATCH_STATUS_SENT,
    SMS_TRIGGER_MANUAL,
)
from parkmate.messaging.errors import SubscriptionRequiredError
from parkmate.messaging.types import DispatchSummary, VehicleSendOutcome
from parkmate.registry.constants import VEHICLE_STATUS_FAILED, VEHICLE_STATUS_SENT
from parkmate.registry.errors import VillaNotFoundError
from parkmate.services.sms_gateway import SmsGatewayError, build_sms_client, send_sms
from parkmate.subscriptions.status import has_active_entitlement

logger = structlog.get_logger(__name__)


async def _send_one(
    session: AsyncSession,
    *,
    client: httpx.AsyncClient,
    villa: Villa,
    vehicle: Vehicle,
    trigger: str,
    now_utc: datetime | None,
    sleep: Callable[[float], Awaitable[None]],
) -> VehicleSendOutcome:
    error: str | None = None
    try:
        result = await send_sms(
            client=client,
            to_number=villa.sms_number,
            message=vehicle.sms_message,
            sleep=sleep,
        )
        attempts = result.attempts
        status = DISPATCH_STATUS_SENT
    except SmsGatewayError as exc:
        attempts = exc.attempts
        status = DISPATCH_STATUS_FAILED
        error = str(exc)
        logger.warning(
            "sms_dispatch_failed",
            device_id=villa.device_id,
            villa_id=villa.villa_id,
            vehicle_id=vehicle.id,
            attempts=attempts,
            error=error,
        )

    sent_at = now_utc or datetime.now(timezone.utc)
    await SmsDispatchRepo.create(
        session,
        dispatch=SmsDispatch(
            device_id=villa.device_id,
            villa_id=villa.villa_id,
            vehicle_id=vehicle.id,
            to_number=villa.sms_number,
            message=vehicle.sms_message,
            status=status,
            attempts=max(1, attempts),
            error=error,
            trigger=trigger,
            created_at=sent_at,
        ),
    )
    if status == DISPATCH_STATUS_SENT:
        vehicle.status = VEHICLE_STATUS_SENT
        vehicle.last_sent_at = sent_at
    else:
        vehicle.status = VEHICLE_STATUS_FAILED
    vehicle.updated_at = sent_at

    return VehicleSendOutcome(
        vehicle_id=vehicle.id,
        plate_number=vehicle.plate_number,
        status=status,
        attempts=attempts,
        error=error,
    )


async def send_villa_sms(
    session: AsyncSession,
    *,
    device_id: str,
    villa_id: str,
    vehicle_ids: Sequence[int] | None = None,
    trigger: str = SMS_TRIGGER_MANUAL,
    client: httpx.AsyncClient | None = None,
    now_utc: datetime | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> DispatchSummary:
    """Send the SMS of each selected vehicle of a villa, one after another.

    A gateway failure for one vehicle is recorded and does not stop the batch.
    """
    villa = await VillasRepo.get(session, device_id=device_id, villa_id=villa_id)
    if villa is None:
        raise VillaNotFoundError
    if not await has_active_entitlement(
        session, device_id=device_id, villa_id=villa_id, now_utc=now_utc
    ):
        raise SubscriptionRequiredError

    vehicles = await VehiclesRepo.list_by_villa(
        session,
        device_id=device_id,
        villa_id=villa_id,
        vehicle_ids=vehicle_ids,
    )
    summary = DispatchSummary(villa_id=villa_id, trigger=trigger)
    if not vehicles:
        return summary

    async with AsyncExitStack() as stack:
        if client is None:
            client = await stack.enter_async_context(build_sms_client())
        for vehicle in vehicles:
            summary.results.append(
                await _send_one(
                    session,
                    client=client,
                    villa=villa,
                    vehicle=vehicle,
                    trigger=trigger,
                    now_utc=now_utc,
                    sleep=sleep,
                )
            )

    await session.flush()
    logger.info(
        "sms_batch_finished",
        device_id=device_id,
        villa_id=villa_id,
        trigger=trigger,
        sent=summary.sent,
        failed=summary.failed,
    )
    return summary
