from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest

from parkmate.db.models.automation_schedules import AutomationSchedule
from parkmate.registry import villas as villas_module
from parkmate.registry.errors import (
    RegistryValidationError,
    VillaAlreadyExistsError,
    VillaLimitReachedError,
    VillaNotFoundError,
)
from parkmate.registry.villas import VillaService
from tests.fakes import (
    NOW_UTC,
    FakeSession,
    InMemoryRegistryStore,
    InMemorySubscriptionStore,
)


@pytest.fixture
def stores(monkeypatch) -> tuple[InMemorySubscriptionStore, InMemoryRegistryStore]:
    monkeypatch.setattr(
        villas_module,
        "get_settings",
        lambda: SimpleNamespace(free_villa_allowance=1),
    )
    return (
        InMemorySubscriptionStore().install(monkeypatch),
        InMemoryRegistryStore().install(monkeypatch),
    )


async def _add(device_id: str, villa_id: str):
    return await VillaService.add_villa(
        FakeSession(),
        device_id=device_id,
        villa_id=villa_id,
        name=f"Villa {villa_id}",
        sms_number="+971500000001",
        now_utc=NOW_UTC,
    )


@pytest.mark.asyncio
async def test_free_allowance_permits_one_villa(stores) -> None:
    villa = await _add("device-1", " V1 ")
    assert villa.villa_id == "V1"
    assert villa.is_active is True

    with pytest.raises(VillaLimitReachedError) as exc_info:
        await _add("device-1", "V2")
    assert exc_info.value.limit == 1


@pytest.mark.asyncio
async def test_multi_villa_code_raises_villa_limit(stores) -> None:
    subscriptions, registry = stores
    subscriptions.add_code("PK123456AB", villa_count=3)
    subscriptions.add_subscription(
        villa_id="V1",
        device_id="device-1",
        subscription_type="activation_code",
        activation_code="PK123456AB",
        activated_at=NOW_UTC,
        expires_at=NOW_UTC + timedelta(days=30),
    )

    assert await VillaService.villa_limit(FakeSession(), device_id="device-1") == 3
    for villa_id in ("V1", "V2", "V3"):
        await _add("device-1", villa_id)
    with pytest.raises(VillaLimitReachedError):
        await _add("device-1", "V4")
    assert len(registry.villas) == 3


@pytest.mark.asyncio
async def test_duplicate_villa_is_rejected(stores) -> None:
    await _add("device-1", "V1")
    with pytest.raises(VillaAlreadyExistsError):
        await _add("device-1", "V1")


@pytest.mark.asyncio
async def test_same_villa_id_on_other_device_is_independent(stores) -> None:
    await _add("device-1", "V1")
    villa = await _add("device-2", "V1")
    assert villa.device_id == "device-2"


@pytest.mark.asyncio
@pytest.mark.parametrize("villa_id", ["", "   ", "V" * 51])
async def test_villa_id_is_validated(stores, villa_id: str) -> None:
    with pytest.raises(RegistryValidationError):
        await _add("device-1", villa_id)


@pytest.mark.asyncio
async def test_update_villa_changes_only_given_fields(stores) -> None:
    await _add("device-1", "V1")

    villa = await VillaService.update_villa(
        FakeSession(),
        device_id="device-1",
        villa_id="V1",
        sms_number=" +971500000009 ",
        is_active=False,
    )

    assert villa.name == "Villa V1"
    assert villa.sms_number == "+971500000009"
    assert villa.is_active is False


@pytest.mark.asyncio
async def test_update_and_delete_unknown_villa(stores) -> None:
    with pytest.raises(VillaNotFoundError):
        await VillaService.update_villa(FakeSession(), device_id="device-1", villa_id="nope", name="x")
    with pytest.raises(VillaNotFoundError):
        await VillaService.delete_villa(FakeSession(), device_id="device-1", villa_id="nope")


@pytest.mark.asyncio
async def test_delete_villa_removes_vehicles_and_schedule(stores) -> None:
    _, registry = stores
    await _add("device-1", "V1")
    registry.add_vehicle("ABC123", villa_id="V1")
    registry.schedules.append(
        AutomationSchedule(
            id=1,
            device_id="device-1",
            villa_id="V1",
            is_enabled=True,
            time_of_day="09:00",
            days_of_week=[True] * 7,
            last_run_at=None,
            created_at=NOW_UTC,
            updated_at=NOW_UTC,
        )
    )

    await VillaService.delete_villa(FakeSession(), device_id="device-1", villa_id="V1")

    assert registry.villas == []
    assert registry.vehicles == []
    assert registry.schedules == []
