from __future__ import annotations

from fastapi import APIRouter, Request

from parkmate.api.routes.models import CodeSummaryResponse, UsedCodePayload
from parkmate.db.session import SessionLocal
from parkmate.services.internal_auth import assert_internal_access
from parkmate.subscriptions.codes import ActivationCodeService

router = APIRouter(tags=["internal", "activation-codes"])


@router.get("/internal/activation-codes/summary", response_model=CodeSummaryResponse)
async def activation_codes_summary(request: Request) -> CodeSummaryResponse:
    assert_internal_access(request, scope="activation_codes_summary")

    async with SessionLocal() as session:
        summary = await ActivationCodeService.summarize(session)

    return CodeSummaryResponse(
        total=summary.total,
        used=summary.used,
        unused=summary.unused,
        recent=[
            UsedCodePayload(
                code=item.code,
                duration=item.duration_days,
                villa_count=item.villa_count,
                used_at=item.used_at,
            )
            for item in summary.recent
        ],
    )
