from __future__ import annotations

from types import SimpleNamespace

import pytest

from parkmate.registry import vehicles as vehicles_module
from parkmate.registry.errors import (
    RegistryValidationError,
    VehicleLimitReachedError,
    VehicleNotFoundError,
    VillaNotFoundError,
)
from parkmate.registry.vehicles import VehicleService, default_sms_message, normalize_plate_number
from tests.fakes import NOW_UTC, FakeSession, InMemoryRegistryStore


@pytest.fixture
def registry(monkeypatch) -> InMemoryRegistryStore:
    monkeypatch.setattr(
        vehicles_module,
        "get_settings",
        lambda: SimpleNamespace(sms_message_template="{plate_number} E21 6"),
    )
    store = InMemoryRegistryStore().install(monkeypatch)
    store.add_villa("V1")
    return store


async def _add(plate_number: str, **kwargs):
    kwargs.setdefault("villa_id", "V1")
    return await VehicleService.add_vehicle(
        FakeSession(),
        device_id="device-1",
        plate_number=plate_number,
        now_utc=NOW_UTC,
        **kwargs,
    )


def test_normalize_plate_number() -> None:
    assert normalize_plate_number("  dxb 12345 ") == "DXB 12345"
    with pytest.raises(RegistryValidationError):
        normalize_plate_number("   ")


def test_default_sms_message_uses_template(monkeypatch) -> None:
    monkeypatch.setattr(
        vehicles_module,
        "get_settings",
        lambda: SimpleNamespace(sms_message_template="Park {plate_number}"),
    )
    assert default_sms_message("ABC123") == "Park ABC123"


@pytest.mark.asyncio
async def test_add_vehicle_assigns_serial_numbers_and_default_message(registry) -> None:
    first = await _add("abc123", room_name=" 101 ")
    second = await _add("xyz789", sms_message="custom text")

    assert (first.serial_number, second.serial_number) == (1, 2)
    assert first.plate_number == "ABC123"
    assert first.room_name == "101"
    assert first.sms_message == "ABC123 E21 6"
    assert first.status == "pending"
    assert second.sms_message == "custom text"


@pytest.mark.asyncio
async def test_serial_numbers_continue_after_delete(registry) -> None:
    first = await _add("AAA1")
    second = await _add("BBB2")
    await VehicleService.delete_vehicle(FakeSession(), device_id="device-1", vehicle_id=first.id)

    third = await _add("CCC3")

    assert third.serial_number == second.serial_number + 1


@pytest.mark.asyncio
async def test_add_vehicle_requires_existing_villa(registry) -> None:
    with pytest.raises(VillaNotFoundError):
        await _add("ABC123", villa_id="missing")


@pytest.mark.asyncio
async def test_vehicle_limit_per_villa(registry) -> None:
    for index in range(20):
        registry.add_vehicle(f"P{index}")

    with pytest.raises(VehicleLimitReachedError) as exc_info:
        await _add("ONE MORE")
    assert exc_info.value.limit == 20


@pytest.mark.asyncio
async def test_sms_message_longer_than_single_sms_is_rejected(registry) -> None:
    with pytest.raises(RegistryValidationError):
        await _add("ABC123", sms_message="x" * 161)


@pytest.mark.asyncio
async def test_update_vehicle_fields_and_status(registry) -> None:
    vehicle = await _add("ABC123")

    updated = await VehicleService.update_vehicle(
        FakeSession(),
        device_id="device-1",
        vehicle_id=vehicle.id,
        plate_number="new1",
        status="verified",
    )

    assert updated.plate_number == "NEW1"
    assert updated.status == "verified"
    assert updated.sms_message == "ABC123 E21 6"

    with pytest.raises(RegistryValidationError):
        await VehicleService.update_vehicle(
            FakeSession(), device_id="device-1", vehicle_id=vehicle.id, status="parked"
        )


@pytest.mark.asyncio
async def test_vehicle_of_other_device_is_not_found(registry) -> None:
    vehicle = await _add("ABC123")

    with pytest.raises(VehicleNotFoundError):
        await VehicleService.update_vehicle(
            FakeSession(), device_id="device-2", vehicle_id=vehicle.id, room_name="x"
        )
    with pytest.raises(VehicleNotFoundError):
        await VehicleService.delete_vehicle(FakeSession(), device_id="device-2", vehicle_id=vehicle.id)


@pytest.mark.asyncio
async def test_list_vehicles_orders_by_serial(registry) -> None:
    await _add("AAA1")
    await _add("BBB2")

    vehicles = await VehicleService.list_vehicles(FakeSession(), device_id="device-1", villa_id="V1")

    assert [item.plate_number for item in vehicles] == ["AAA1", "BBB2"]
    with pytest.raises(VillaNotFoundError):
        await VehicleService.list_vehicles(FakeSession(), device_id="device-1", villa_id="V9")
