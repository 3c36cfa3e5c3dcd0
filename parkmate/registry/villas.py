from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parkmate.core.config import get_settings
from parkmate.db.models.villas import Villa
from parkmate.db.repo.villas_repo import VillasRepo
from parkmate.registry.constants import MAX_VILLA_ID_LENGTH
from parkmate.registry.errors import (
    RegistryValidationError,
    VillaAlreadyExistsError,
    VillaLimitReachedError,
    VillaNotFoundError,
)
from parkmate.subscriptions.status import get_status

logger = structlog.get_logger(__name__)


def _clean_villa_id(villa_id: str) -> str:
    cleaned = villa_id.strip()
    if not cleaned or len(cleaned) > MAX_VILLA_ID_LENGTH:
        raise RegistryValidationError(f"villaId must be 1..{MAX_VILLA_ID_LENGTH} characters")
    return cleaned


def _clean_required(value: str, *, field: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise RegistryValidationError(f"{field} must not be empty")
    return cleaned


class VillaService:
    @staticmethod
    async def villa_limit(session: AsyncSession, *, device_id: str) -> int:
        status = await get_status(session, device_id=device_id)
        return max(get_settings().free_villa_allowance, status.villa_limit)

    @staticmethod
    async def list_villas(session: AsyncSession, *, device_id: str) -> list[Villa]:
        return await VillasRepo.list_by_device(session, device_id=device_id)

    @staticmethod
    async def get_villa(session: AsyncSession, *, device_id: str, villa_id: str) -> Villa:
        villa = await VillasRepo.get(session, device_id=device_id, villa_id=villa_id)
        if villa is None:
            raise VillaNotFoundError
        return villa

    @staticmethod
    async def add_villa(
        session: AsyncSession,
        *,
        device_id: str,
        villa_id: str,
        name: str,
        sms_number: str,
        now_utc: datetime | None = None,
    ) -> Villa:
        now_utc = now_utc or datetime.now(timezone.utc)
        villa_id = _clean_villa_id(villa_id)
        name = _clean_required(name, field="name")
        sms_number = _clean_required(sms_number, field="smsNumber")

        if await VillasRepo.get(session, device_id=device_id, villa_id=villa_id) is not None:
            raise VillaAlreadyExistsError

        limit = await VillaService.villa_limit(session, device_id=device_id)
        current = await VillasRepo.count_by_device(session, device_id=device_id)
        if current >= limit:
            logger.info("villa_limit_reached", device_id=device_id, limit=limit)
            raise VillaLimitReachedError(limit)

        try:
            async with session.begin_nested():
                villa = await VillasRepo.create(
                    session,
                    villa=Villa(
                        device_id=device_id,
                        villa_id=villa_id,
                        name=name,
                        sms_number=sms_number,
                        is_active=True,
                        created_at=now_utc,
                        updated_at=now_utc,
                    ),
                )
        except IntegrityError as exc:
            raise VillaAlreadyExistsError from exc

        logger.info("villa_created", device_id=device_id, villa_id=villa_id)
        return villa

    @staticmethod
    async def update_villa(
        session: AsyncSession,
        *,
        device_id: str,
        villa_id: str,
        name: str | None = None,
        sms_number: str | None = None,
        is_active: bool | None = None,
        now_utc: datetime | None = None,
    ) -> Villa:
        now_utc = now_utc or datetime.now(timezone.utc)
        villa = await VillasRepo.get_for_update(session, device_id=device_id, villa_id=villa_id)
        if villa is None:
            raise VillaNotFoundError

        if name is not None:
            villa.name = _clean_required(name, field="name")
        if sms_number is not None:
            villa.sms_number = _clean_required(sms_number, field="smsNumber")
        if is_active is not None:
            villa.is_active = is_active
        villa.updated_at = now_utc
        await session.flush()
        return villa

    @staticmethod
    async def delete_villa(session: AsyncSession, *, device_id: str, villa_id: str) -> None:
        villa = await VillasRepo.get_for_update(session, device_id=device_id, villa_id=villa_id)
        if villa is None:
            raise VillaNotFoundError
        await VillasRepo.delete_with_children(session, villa=villa)
        logger.info("villa_deleted", device_id=device_id, villa_id=villa_id)
