from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Path
from fastapi.responses import JSONResponse

from parkmate.api.routes.models import (
    DeletedResponse,
    ErrorResponse,
    VehicleCreateRequest,
    VehiclePayload,
    VehicleResponse,
    VehiclesResponse,
    VehicleUpdateRequest,
    VillaCreateRequest,
    VillaPayload,
    VillaResponse,
    VillasResponse,
    VillaUpdateRequest,
)
from parkmate.api.routes.responses import registry_error_response
from parkmate.db.models.vehicles import Vehicle
from parkmate.db.models.villas import Villa
from parkmate.db.session import SessionLocal
from parkmate.registry.errors import RegistryError
from parkmate.registry.vehicles import VehicleService
from parkmate.registry.villas import VillaService

router = APIRouter(prefix="/devices/{device_id}", tags=["devices"])
ERROR_RESPONSES = {400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}

DeviceId = Annotated[str, Path(min_length=1, max_length=100)]
VillaId = Annotated[str, Path(min_length=1, max_length=50)]


def _villa_payload(villa: Villa) -> VillaPayload:
    return VillaPayload(
        villa_id=villa.villa_id,
        name=villa.name,
        sms_number=villa.sms_number,
        is_active=villa.is_active,
        created_at=villa.created_at,
        updated_at=villa.updated_at,
    )


def _vehicle_payload(vehicle: Vehicle) -> VehiclePayload:
    return VehiclePayload(
        id=vehicle.id,
        villa_id=vehicle.villa_id,
        plate_number=vehicle.plate_number,
        room_name=vehicle.room_name,
        sms_message=vehicle.sms_message,
        serial_number=vehicle.serial_number,
        status=vehicle.status,
        last_sent_at=vehicle.last_sent_at,
    )


@router.get("/villas", response_model=VillasResponse)
async def list_villas(device_id: DeviceId) -> VillasResponse:
    async with SessionLocal() as session:
        villas = await VillaService.list_villas(session, device_id=device_id)
        villa_limit = await VillaService.villa_limit(session, device_id=device_id)
    return VillasResponse(
        villas=[_villa_payload(villa) for villa in villas],
        villa_limit=villa_limit,
    )


@router.post("/villas", response_model=VillaResponse, status_code=201, responses=ERROR_RESPONSES)
async def add_villa(
    payload: VillaCreateRequest, device_id: DeviceId
) -> VillaResponse | JSONResponse:
    try:
        async with SessionLocal.begin() as session:
            villa = await VillaService.add_villa(
                session,
                device_id=device_id,
                villa_id=payload.villa_id,
                name=payload.name,
                sms_number=payload.sms_number,
            )
    except RegistryError as exc:
        return registry_error_response(exc)
    return VillaResponse(villa=_villa_payload(villa))


@router.get("/villas/{villa_id}", response_model=VillaResponse, responses=ERROR_RESPONSES)
async def get_villa(
    device_id: DeviceId, villa_id: VillaId
) -> VillaResponse | JSONResponse:
    try:
        async with SessionLocal() as session:
            villa = await VillaService.get_villa(session, device_id=device_id, villa_id=villa_id)
    except RegistryError as exc:
        return registry_error_response(exc)
    return VillaResponse(villa=_villa_payload(villa))


@router.patch("/villas/{villa_id}", response_model=VillaResponse, responses=ERROR_RESPONSES)
async def update_villa(
    payload: VillaUpdateRequest, device_id: DeviceId, villa_id: VillaId
) -> VillaResponse | JSONResponse:
    try:
        async with SessionLocal.begin() as session:
            villa = await VillaService.update_villa(
                session,
                device_id=device_id,
                villa_id=villa_id,
                name=payload.name,
                sms_number=payload.sms_number,
                is_active=payload.is_active,
            )
    except RegistryError as exc:
        return registry_error_response(exc)
    return VillaResponse(villa=_villa_payload(villa))


@router.delete("/villas/{villa_id}", response_model=DeletedResponse, responses=ERROR_RESPONSES)
async def delete_villa(
    device_id: DeviceId, villa_id: VillaId
) -> DeletedResponse | JSONResponse:
    try:
        async with SessionLocal.begin() as session:
            await VillaService.delete_villa(session, device_id=device_id, villa_id=villa_id)
    except RegistryError as exc:
        return registry_error_response(exc)
    return DeletedResponse()


@router.get(
    "/villas/{villa_id}/vehicles",
    response_model=VehiclesResponse,
    responses=ERROR_RESPONSES,
)
async def list_vehicles(
    device_id: DeviceId, villa_id: VillaId
) -> VehiclesResponse | JSONResponse:
    try:
        async with SessionLocal() as session:
            vehicles = await VehicleService.list_vehicles(
                session, device_id=device_id, villa_id=villa_id
            )
    except RegistryError as exc:
        return registry_error_response(exc)
    return VehiclesResponse(vehicles=[_vehicle_payload(vehicle) for vehicle in vehicles])


@router.post(
    "/villas/{villa_id}/vehicles",
    response_model=VehicleResponse,
    status_code=201,
    responses=ERROR_RESPONSES,
)
async def add_vehicle(
    payload: VehicleCreateRequest, device_id: DeviceId, villa_id: VillaId
) -> VehicleResponse | JSONResponse:
    try:
        async with SessionLocal.begin() as session:
            vehicle = await VehicleService.add_vehicle(
                session,
                device_id=device_id,
                villa_id=villa_id,
                plate_number=payload.plate_number,
                room_name=payload.room_name,
                sms_message=payload.sms_message,
            )
    except RegistryError as exc:
        return registry_error_response(exc)
    return VehicleResponse(vehicle=_vehicle_payload(vehicle))


@router.patch("/vehicles/{vehicle_id}", response_model=VehicleResponse, responses=ERROR_RESPONSES)
async def update_vehicle(
    payload: VehicleUpdateRequest, vehicle_id: int, device_id: DeviceId
) -> VehicleResponse | JSONResponse:
    try:
        async with SessionLocal.begin() as session:
            vehicle = await VehicleService.update_vehicle(
                session,
                device_id=device_id,
                vehicle_id=vehicle_id,
                plate_number=payload.plate_number,
                room_name=payload.room_name,
                sms_message=payload.sms_message,
                status=payload.status,
            )
    except RegistryError as exc:
        return registry_error_response(exc)
    return VehicleResponse(vehicle=_vehicle_payload(vehicle))


@router.delete(
    "/vehicles/{vehicle_id}",
    response_model=DeletedResponse,
    responses=ERROR_RESPONSES,
)
async def delete_vehicle(
    vehicle_id: int, device_id: DeviceId
) -> DeletedResponse | JSONResponse:
    try:
        async with SessionLocal.begin() as session:
            await VehicleService.delete_vehicle(session, device_id=device_id, vehicle_id=vehicle_id)
    except RegistryError as exc:
        return registry_error_response(exc)
    return DeletedResponse()
