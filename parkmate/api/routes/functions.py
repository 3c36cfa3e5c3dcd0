from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from parkmate.api.routes.models import (
    ActivateVillaRequest,
    DeviceRequest,
    ErrorResponse,
    GenerateCodesRequest,
    GenerateCodesResponse,
    RedeemCodeRequest,
    RedeemResponse,
    StatusPayload,
    StatusResponse,
    SubscriptionPayload,
    TrialEligibilityResponse,
    TrialRequest,
    UsedCodePayload,
    UsedCodesResponse,
    VillaSubscriptionPayload,
    VillaSubscriptionsResponse,
)
from parkmate.api.routes.responses import subscription_error_response
from parkmate.db.session import SessionLocal
from parkmate.services.internal_auth import assert_internal_access
from parkmate.subscriptions import status as status_reader
from parkmate.subscriptions import trials
from parkmate.subscriptions.codes import ActivationCodeService
from parkmate.subscriptions.errors import SubscriptionError
from parkmate.subscriptions.service import SubscriptionService
from parkmate.subscriptions.types import RedeemResult

router = APIRouter(prefix="/functions", tags=["functions"])
ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _subscription_payload(result: RedeemResult) -> SubscriptionPayload:
    return SubscriptionPayload(
        id=result.subscription_id,
        device_id=result.device_id,
        villa_id=result.villa_id,
        type=result.subscription_type,
        activation_code=result.activation_code,
        is_active=result.is_active,
        activated_at=result.activated_at,
        expires_at=result.expires_at,
        days_granted=result.days_granted,
        extended=result.extended,
    )


def _redeem_message(result: RedeemResult) -> str:
    expiry = result.expires_at.isoformat()
    if result.villa_id is None:
        return f"Subscription activated! Expires: {expiry}"
    if result.extended:
        return f"Villa subscription extended! New expiry: {expiry}"
    return f"Villa subscription activated! Expires: {expiry}"


async def _redeem(
    *, code: str, device_id: str, villa_id: str | None
) -> RedeemResponse | JSONResponse:
    try:
        async with SessionLocal.begin() as session:
            result = await SubscriptionService.redeem(
                session,
                code=code,
                device_id=device_id,
                villa_id=villa_id,
                now_utc=datetime.now(timezone.utc),
            )
    except SubscriptionError as exc:
        return subscription_error_response(exc)

    return RedeemResponse(
        subscription=_subscription_payload(result),
        message=_redeem_message(result),
    )


@router.post(
    "/generate-activation-code",
    response_model=GenerateCodesResponse,
    responses=ERROR_RESPONSES,
)
async def generate_activation_code(
    payload: GenerateCodesRequest, request: Request
) -> GenerateCodesResponse | JSONResponse:
    assert_internal_access(request, scope="generate_activation_code")

    try:
        async with SessionLocal.begin() as session:
            result = await ActivationCodeService.generate(
                session,
                count=payload.count,
                duration_days=payload.duration,
                villa_count=payload.villa_count,
                expires_at=payload.expires_at,
                created_by="internal_api",
            )
    except SubscriptionError as exc:
        return subscription_error_response(exc)

    return GenerateCodesResponse(
        codes=result.codes,
        duration=result.duration_days,
        count=len(result.codes),
        villa_count=result.villa_count,
    )


@router.post(
    "/validate-activation-code",
    response_model=RedeemResponse,
    responses=ERROR_RESPONSES,
)
async def validate_activation_code(payload: RedeemCodeRequest) -> RedeemResponse | JSONResponse:
    return await _redeem(code=payload.code, device_id=payload.device_id, villa_id=payload.villa_id)


@router.post(
    "/activate-villa-subscription",
    response_model=RedeemResponse,
    responses=ERROR_RESPONSES,
)
async def activate_villa_subscription(
    payload: ActivateVillaRequest,
) -> RedeemResponse | JSONResponse:
    return await _redeem(code=payload.code, device_id=payload.device_id, villa_id=payload.villa_id)


@router.post("/get-subscription-status", response_model=StatusResponse)
async def get_subscription_status(payload: DeviceRequest) -> StatusResponse:
    async with SessionLocal() as session:
        current = await status_reader.get_status(session, device_id=payload.device_id)

    return StatusResponse(
        subscription=StatusPayload(
            is_active=current.is_active,
            type=current.subscription_type,
            expires_at=current.expires_at,
            activation_code=current.activation_code,
            villa_limit=current.villa_limit,
        )
    )


@router.post("/get-villa-subscriptions", response_model=VillaSubscriptionsResponse)
async def get_villa_subscriptions(payload: DeviceRequest) -> VillaSubscriptionsResponse:
    async with SessionLocal() as session:
        items = await status_reader.list_villa_subscriptions(session, device_id=payload.device_id)

    return VillaSubscriptionsResponse(
        subscriptions=[
            VillaSubscriptionPayload(
                id=item.subscription_id,
                villa_id=item.villa_id,
                activation_code=item.activation_code,
                is_active=item.is_active,
                activated_at=item.activated_at,
                expires_at=item.expires_at,
            )
            for item in items
        ]
    )


@router.post("/list-used-codes", response_model=UsedCodesResponse)
async def list_used_codes(payload: DeviceRequest) -> UsedCodesResponse:
    async with SessionLocal() as session:
        items = await status_reader.list_used_codes(session, device_id=payload.device_id)

    return UsedCodesResponse(
        codes=[
            UsedCodePayload(
                code=item.code,
                duration=item.duration_days,
                villa_count=item.villa_count,
                used_at=item.used_at,
            )
            for item in items
        ]
    )


@router.post("/check-trial-eligibility", response_model=TrialEligibilityResponse)
async def check_trial_eligibility(payload: TrialRequest) -> TrialEligibilityResponse:
    async with SessionLocal() as session:
        eligibility = await trials.check_eligibility(
            session,
            device_id=payload.device_id,
            ip_fingerprint=payload.ip_fingerprint,
        )
    return TrialEligibilityResponse(eligible=eligibility.eligible, reason=eligibility.reason)


@router.post("/start-free-trial", response_model=RedeemResponse, responses=ERROR_RESPONSES)
async def start_free_trial(payload: TrialRequest) -> RedeemResponse | JSONResponse:
    try:
        async with SessionLocal.begin() as session:
            result = await trials.start_trial(
                session,
                device_id=payload.device_id,
                ip_fingerprint=payload.ip_fingerprint,
            )
    except SubscriptionError as exc:
        return subscription_error_response(exc)

    return RedeemResponse(
        subscription=_subscription_payload(result),
        message=f"Free trial started! Expires: {result.expires_at.isoformat()}",
    )
