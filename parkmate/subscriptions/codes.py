from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from parkmate.core.activation_codes import (
    code_log_prefix,
    is_valid_activation_code_format,
    new_activation_code,
    normalize_activation_code,
)
from parkmate.core.config import get_settings
from parkmate.db.models.activation_codes import ActivationCode
from parkmate.db.repo.activation_codes_repo import ActivationCodesRepo
from parkmate.subscriptions.constants import (
    ALLOWED_CODE_DURATIONS_DAYS,
    CODE_SUMMARY_PAGE_SIZE,
    MAX_CODE_GENERATION_ATTEMPTS_PER_CODE,
    MAX_CODES_PER_BATCH,
    MAX_VILLA_COUNT,
    MIN_CODES_PER_BATCH,
    MIN_VILLA_COUNT,
)
from parkmate.subscriptions.errors import (
    ActivationCodeExpiredError,
    ActivationCodeInvalidFormatError,
    ActivationCodeNotFoundError,
    CodeGenerationRequestError,
)
from parkmate.subscriptions.types import CodeSummary, GeneratedCodesResult, UsedCodeView

logger = structlog.get_logger(__name__)


def generate_raw_codes(
    *,
    count: int,
    existing_codes: set[str] | None = None,
    factory: Callable[[], str] = new_activation_code,
) -> list[str]:
    if count <= 0:
        raise ValueError("count must be positive")

    existing = existing_codes if existing_codes is not None else set()
    generated: list[str] = []
    attempts = 0
    max_attempts = max(100, count * MAX_CODE_GENERATION_ATTEMPTS_PER_CODE)

    while len(generated) < count:
        attempts += 1
        if attempts > max_attempts:
            raise RuntimeError("unable to generate unique activation codes")

        raw_code = factory()
        if raw_code in existing:
            continue

        existing.add(raw_code)
        generated.append(raw_code)

    return generated


def validate_generation_request(*, count: int, duration_days: int, villa_count: int) -> None:
    if not (MIN_CODES_PER_BATCH <= count <= MAX_CODES_PER_BATCH):
        raise CodeGenerationRequestError(
            f"Count must be between {MIN_CODES_PER_BATCH} and {MAX_CODES_PER_BATCH}"
        )
    if duration_days not in ALLOWED_CODE_DURATIONS_DAYS:
        allowed = ", ".join(str(days) for days in sorted(ALLOWED_CODE_DURATIONS_DAYS))
        raise CodeGenerationRequestError(f"Invalid duration. Must be one of {allowed} days")
    if not (MIN_VILLA_COUNT <= villa_count <= MAX_VILLA_COUNT):
        raise CodeGenerationRequestError(
            f"Villa count must be between {MIN_VILLA_COUNT} and {MAX_VILLA_COUNT}"
        )


def reuse_window_deadline(activation_code: ActivationCode) -> datetime | None:
    window_days = get_settings().code_reuse_window_days
    if window_days <= 0 or activation_code.used_at is None:
        return None
    return activation_code.used_at + timedelta(days=window_days)


class ActivationCodeService:
    @staticmethod
    async def generate(
        session: AsyncSession,
        *,
        count: int,
        duration_days: int,
        created_by: str,
        villa_count: int = 1,
        expires_at: datetime | None = None,
        now_utc: datetime | None = None,
    ) -> GeneratedCodesResult:
        validate_generation_request(
            count=count,
            duration_days=duration_days,
            villa_count=villa_count,
        )
        now_utc = now_utc or datetime.now(timezone.utc)

        codes: list[str] = []
        seen: set[str] = set()
        while len(codes) < count:
            candidates = generate_raw_codes(count=count - len(codes), existing_codes=seen)
            taken = await ActivationCodesRepo.list_existing_codes(session, candidates)
            codes.extend(candidate for candidate in candidates if candidate not in taken)

        await ActivationCodesRepo.create_many(
            session,
            codes=[
                ActivationCode(
                    code=code,
                    duration_days=duration_days,
                    villa_count=villa_count,
                    is_used=False,
                    used_by_device_id=None,
                    used_at=None,
                    expires_at=expires_at,
                    created_by=created_by,
                    created_at=now_utc,
                )
                for code in codes
            ],
        )
        logger.info(
            "activation_codes_generated",
            count=len(codes),
            duration_days=duration_days,
            villa_count=villa_count,
            created_by=created_by,
        )
        return GeneratedCodesResult(
            codes=codes,
            duration_days=duration_days,
            villa_count=villa_count,
        )

    @staticmethod
    async def validate(
        session: AsyncSession,
        *,
        code: str,
        now_utc: datetime | None = None,
        for_update: bool = False,
    ) -> ActivationCode:
        """Check format, existence and expiry of a code.

        A used code is still valid here: it may be redeemed again for further
        villas until its villa quota is spent.
        """
        now_utc = now_utc or datetime.now(timezone.utc)
        normalized = normalize_activation_code(code)
        if not is_valid_activation_code_format(normalized):
            raise ActivationCodeInvalidFormatError

        if for_update:
            activation_code = await ActivationCodesRepo.get_by_code_for_update(session, normalized)
        else:
            activation_code = await ActivationCodesRepo.get_by_code(session, normalized)
        if activation_code is None:
            logger.info("activation_code_not_found", code_prefix=code_log_prefix(normalized))
            raise ActivationCodeNotFoundError

        if activation_code.expires_at is not None and activation_code.expires_at <= now_utc:
            raise ActivationCodeExpiredError

        reuse_deadline = reuse_window_deadline(activation_code)
        if reuse_deadline is not None and reuse_deadline <= now_utc:
            raise ActivationCodeExpiredError

        return activation_code

    @staticmethod
    async def summarize(session: AsyncSession) -> CodeSummary:
        counts = await ActivationCodesRepo.count_by_usage(session)
        recent = await ActivationCodesRepo.list_recent(session, limit=CODE_SUMMARY_PAGE_SIZE)
        used = counts.get(True, 0)
        unused = counts.get(False, 0)
        return CodeSummary(
            total=used + unused,
            used=used,
            unused=unused,
            recent=[
                UsedCodeView(
                    code=item.code,
                    duration_days=item.duration_days,
                    villa_count=item.villa_count,
                    used_at=item.used_at,
                )
                for item in recent
            ],
        )
