from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from parkmate.core.config import get_settings
from parkmate.db.models.vehicles import Vehicle
from parkmate.db.repo.vehicles_repo import VehiclesRepo
from parkmate.db.repo.villas_repo import VillasRepo
from parkmate.registry.constants import (
    MAX_SMS_MESSAGE_LENGTH,
    MAX_VEHICLES_PER_VILLA,
    VEHICLE_STATUS_PENDING,
    VEHICLE_STATUSES,
)
from parkmate.registry.errors import (
    RegistryValidationError,
    VehicleLimitReachedError,
    VehicleNotFoundError,
    VillaNotFoundError,
)

logger = structlog.get_logger(__name__)


def normalize_plate_number(raw: str) -> str:
    plate = raw.strip().upper()
    if not plate:
        raise RegistryValidationError("plateNumber must not be empty")
    return plate


def default_sms_message(plate_number: str) -> str:
    return get_settings().sms_message_template.format(plate_number=plate_number)


def _clean_message(message: str) -> str:
    cleaned = message.strip()
    if not cleaned:
        raise RegistryValidationError("smsMessage must not be empty")
    if len(cleaned) > MAX_SMS_MESSAGE_LENGTH:
        raise RegistryValidationError(
            f"smsMessage must be at most {MAX_SMS_MESSAGE_LENGTH} characters"
        )
    return cleaned


class VehicleService:
    @staticmethod
    async def list_vehicles(
        session: AsyncSession, *, device_id: str, villa_id: str
    ) -> list[Vehicle]:
        if await VillasRepo.get(session, device_id=device_id, villa_id=villa_id) is None:
            raise VillaNotFoundError
        return await VehiclesRepo.list_by_villa(session, device_id=device_id, villa_id=villa_id)

    @staticmethod
    async def add_vehicle(
        session: AsyncSession,
        *,
        device_id: str,
        villa_id: str,
        plate_number: str,
        room_name: str = "",
        sms_message: str | None = None,
        now_utc: datetime | None = None,
    ) -> Vehicle:
        now_utc = now_utc or datetime.now(timezone.utc)
        # Villa row lock serialises serial number allocation.
        villa = await VillasRepo.get_for_update(session, device_id=device_id, villa_id=villa_id)
        if villa is None:
            raise VillaNotFoundError

        count = await VehiclesRepo.count_by_villa(session, device_id=device_id, villa_id=villa_id)
        if count >= MAX_VEHICLES_PER_VILLA:
            raise VehicleLimitReachedError(MAX_VEHICLES_PER_VILLA)

        plate = normalize_plate_number(plate_number)
        message = _clean_message(sms_message if sms_message else default_sms_message(plate))
        serial_number = (
            await VehiclesRepo.get_max_serial_number(
                session, device_id=device_id, villa_id=villa_id
            )
            + 1
        )
        vehicle = await VehiclesRepo.create(
            session,
            vehicle=Vehicle(
                device_id=device_id,
                villa_id=villa_id,
                plate_number=plate,
                room_name=room_name.strip(),
                sms_message=message,
                serial_number=serial_number,
                status=VEHICLE_STATUS_PENDING,
                last_sent_at=None,
                created_at=now_utc,
                updated_at=now_utc,
            ),
        )
        logger.info(
            "vehicle_created",
            device_id=device_id,
            villa_id=villa_id,
            serial_number=serial_number,
        )
        return vehicle

    @staticmethod
    async def update_vehicle(
        session: AsyncSession,
        *,
        device_id: str,
        vehicle_id: int,
        plate_number: str | None = None,
        room_name: str | None = None,
        sms_message: str | None = None,
        status: str | None = None,
        now_utc: datetime | None = None,
    ) -> Vehicle:
        now_utc = now_utc or datetime.now(timezone.utc)
        vehicle = await VehiclesRepo.get_for_update(
            session, device_id=device_id, vehicle_id=vehicle_id
        )
        if vehicle is None:
            raise VehicleNotFoundError

        if plate_number is not None:
            vehicle.plate_number = normalize_plate_number(plate_number)
        if room_name is not None:
            vehicle.room_name = room_name.strip()
        if sms_message is not None:
            vehicle.sms_message = _clean_message(sms_message)
        if status is not None:
            if status not in VEHICLE_STATUSES:
                raise RegistryValidationError("Unknown vehicle status")
            vehicle.status = status
        vehicle.updated_at = now_utc
        await session.flush()
        return vehicle

    @staticmethod
    async def delete_vehicle(session: AsyncSession, *, device_id: str, vehicle_id: int) -> None:
        vehicle = await VehiclesRepo.get_for_update(
            session, device_id=device_id, vehicle_id=vehicle_id
        )
        if vehicle is None:
            raise VehicleNotFoundError
        await VehiclesRepo.delete(session, vehicle=vehicle)
