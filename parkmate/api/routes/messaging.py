from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Path, Query
from fastapi.responses import JSONResponse

from parkmate.api.routes.models import (
    AutomationPayload,
    AutomationRequest,
    AutomationResponse,
    ErrorResponse,
    SmsHistoryDayPayload,
    SmsHistoryResponse,
    SmsResultPayload,
    SmsSendRequest,
    SmsSendResponse,
)
from parkmate.api.routes.responses import messaging_error_response, registry_error_response
from parkmate.db.session import SessionLocal
from parkmate.messaging.automation import AutomationService
from parkmate.messaging.constants import SMS_HISTORY_DEFAULT_DAYS, SMS_HISTORY_MAX_DAYS
from parkmate.messaging.dispatch import send_villa_sms
from parkmate.messaging.errors import MessagingError
from parkmate.messaging.history import get_sms_history
from parkmate.messaging.types import ScheduleView
from parkmate.registry.errors import RegistryError

router = APIRouter(prefix="/devices/{device_id}", tags=["sms"])
ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    402: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}

DeviceId = Annotated[str, Path(min_length=1, max_length=100)]
VillaId = Annotated[str, Path(min_length=1, max_length=50)]


def _schedule_payload(view: ScheduleView) -> AutomationPayload:
    return AutomationPayload(
        villa_id=view.villa_id,
        is_enabled=view.is_enabled,
        time_of_day=view.time_of_day,
        days_of_week=view.days_of_week,
        last_run_at=view.last_run_at,
        next_run_at=view.next_run_at,
    )


@router.post(
    "/villas/{villa_id}/sms/send",
    response_model=SmsSendResponse,
    responses=ERROR_RESPONSES,
)
async def send_sms_batch(
    device_id: DeviceId,
    villa_id: VillaId,
    payload: SmsSendRequest | None = None,
) -> SmsSendResponse | JSONResponse:
    vehicle_ids = payload.vehicle_ids if payload is not None else None
    try:
        async with SessionLocal.begin() as session:
            summary = await send_villa_sms(
                session,
                device_id=device_id,
                villa_id=villa_id,
                vehicle_ids=vehicle_ids,
            )
    except RegistryError as exc:
        return registry_error_response(exc)
    except MessagingError as exc:
        return messaging_error_response(exc)

    return SmsSendResponse(
        villa_id=summary.villa_id,
        trigger=summary.trigger,
        sent=summary.sent,
        failed=summary.failed,
        total=summary.total,
        results=[
            SmsResultPayload(
                vehicle_id=item.vehicle_id,
                plate_number=item.plate_number,
                status=item.status,
                attempts=item.attempts,
                error=item.error,
            )
            for item in summary.results
        ],
    )


@router.get("/sms/history", response_model=SmsHistoryResponse)
async def sms_history(
    device_id: DeviceId,
    days: int = Query(default=SMS_HISTORY_DEFAULT_DAYS, ge=1, le=SMS_HISTORY_MAX_DAYS),
) -> SmsHistoryResponse:
    async with SessionLocal() as session:
        history = await get_sms_history(session, device_id=device_id, days=days)
    return SmsHistoryResponse(
        days=[
            SmsHistoryDayPayload(date=item.date, successful=item.successful, errors=item.errors)
            for item in history
        ]
    )


@router.get(
    "/villas/{villa_id}/automation",
    response_model=AutomationResponse,
    responses=ERROR_RESPONSES,
)
async def get_automation(
    device_id: DeviceId, villa_id: VillaId
) -> AutomationResponse | JSONResponse:
    try:
        async with SessionLocal() as session:
            view = await AutomationService.get_schedule(
                session, device_id=device_id, villa_id=villa_id
            )
    except RegistryError as exc:
        return registry_error_response(exc)
    return AutomationResponse(schedule=_schedule_payload(view))


@router.put(
    "/villas/{villa_id}/automation",
    response_model=AutomationResponse,
    responses=ERROR_RESPONSES,
)
async def put_automation(
    payload: AutomationRequest, device_id: DeviceId, villa_id: VillaId
) -> AutomationResponse | JSONResponse:
    try:
        async with SessionLocal.begin() as session:
            view = await AutomationService.put_schedule(
                session,
                device_id=device_id,
                villa_id=villa_id,
                is_enabled=payload.is_enabled,
                time_of_day=payload.time_of_day,
                days_of_week=payload.days_of_week,
            )
    except RegistryError as exc:
        return registry_error_response(exc)
    except MessagingError as exc:
        return messaging_error_response(exc)
    return AutomationResponse(schedule=_schedule_payload(view))
