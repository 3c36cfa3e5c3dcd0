from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest

from parkmate.subscriptions import trials as trials_module
from parkmate.subscriptions.constants import TRIAL_REASON_DEVICE_USED, TRIAL_REASON_IP_USED
from parkmate.subscriptions.errors import TrialAlreadyUsedError
from parkmate.subscriptions.trials import check_eligibility, start_trial
from tests.fakes import NOW_UTC, FakeSession, InMemorySubscriptionStore


@pytest.fixture(autouse=True)
def _trial_settings(monkeypatch) -> None:
    monkeypatch.setattr(
        trials_module,
        "get_settings",
        lambda: SimpleNamespace(trial_duration_days=3),
    )


@pytest.mark.asyncio
async def test_new_device_is_eligible(monkeypatch) -> None:
    InMemorySubscriptionStore().install(monkeypatch)

    eligibility = await check_eligibility(FakeSession(), device_id="device-1", ip_fingerprint="fp-1")

    assert eligibility.eligible is True
    assert eligibility.reason is None


@pytest.mark.asyncio
async def test_start_trial_grants_device_wide_subscription(monkeypatch) -> None:
    store = InMemorySubscriptionStore().install(monkeypatch)

    result = await start_trial(
        FakeSession(),
        device_id="device-1",
        ip_fingerprint=" fp-1 ",
        now_utc=NOW_UTC,
    )

    assert result.subscription_type == "trial"
    assert result.villa_id is None
    assert result.activation_code is None
    assert result.expires_at == NOW_UTC + timedelta(days=3)
    assert result.days_granted == 3
    assert store.trials["device-1"].ip_fingerprint == "fp-1"
    assert store.subscriptions[0].subscription_type == "trial"


@pytest.mark.asyncio
async def test_second_trial_on_same_device_is_rejected(monkeypatch) -> None:
    InMemorySubscriptionStore().install(monkeypatch)
    session = FakeSession()
    await start_trial(session, device_id="device-1", now_utc=NOW_UTC)

    eligibility = await check_eligibility(session, device_id="device-1")
    assert eligibility.eligible is False
    assert eligibility.reason == "Device has already used trial"

    with pytest.raises(TrialAlreadyUsedError) as exc_info:
        await start_trial(session, device_id="device-1", now_utc=NOW_UTC)
    assert exc_info.value.reason == "Device has already used trial"


@pytest.mark.asyncio
async def test_trial_is_rejected_for_known_ip_fingerprint(monkeypatch) -> None:
    InMemorySubscriptionStore().install(monkeypatch)
    session = FakeSession()
    await start_trial(session, device_id="device-1", ip_fingerprint="fp-1", now_utc=NOW_UTC)

    with pytest.raises(TrialAlreadyUsedError) as exc_info:
        await start_trial(session, device_id="device-2", ip_fingerprint="fp-1", now_utc=NOW_UTC)

    assert exc_info.value.reason == "IP address has already used trial"


@pytest.mark.asyncio
async def test_blank_fingerprint_is_ignored(monkeypatch) -> None:
    store = InMemorySubscriptionStore().install(monkeypatch)
    session = FakeSession()
    await start_trial(session, device_id="device-1", ip_fingerprint="  ", now_utc=NOW_UTC)
    await start_trial(session, device_id="device-2", ip_fingerprint="", now_utc=NOW_UTC)

    assert store.trials["device-1"].ip_fingerprint is None
    assert store.trials["device-2"].ip_fingerprint is None


@pytest.mark.asyncio
async def test_concurrent_trial_insert_maps_to_already_used(monkeypatch) -> None:
    store = InMemorySubscriptionStore().install(monkeypatch)

    async def _not_seen_yet(session, device_id: str):
        return None

    monkeypatch.setattr(trials_module.TrialsRepo, "get_by_device_id", _not_seen_yet)
    session = FakeSession()
    await start_trial(session, device_id="device-1", now_utc=NOW_UTC)

    with pytest.raises(TrialAlreadyUsedError) as exc_info:
        await start_trial(session, device_id="device-1", now_utc=NOW_UTC)

    assert exc_info.value.reason == TRIAL_REASON_DEVICE_USED
    assert len(store.subscriptions) == 1


@pytest.mark.asyncio
async def test_concurrent_fingerprint_conflict_reports_ip_reason(monkeypatch) -> None:
    store = InMemorySubscriptionStore().install(monkeypatch)

    async def _fingerprint_not_seen_yet(session, ip_fingerprint: str):
        return None

    monkeypatch.setattr(
        trials_module.TrialsRepo, "get_by_ip_fingerprint", _fingerprint_not_seen_yet
    )
    session = FakeSession()
    await start_trial(session, device_id="device-1", ip_fingerprint="fp-1", now_utc=NOW_UTC)

    with pytest.raises(TrialAlreadyUsedError) as exc_info:
        await start_trial(session, device_id="device-2", ip_fingerprint="fp-1", now_utc=NOW_UTC)

    assert exc_info.value.reason == TRIAL_REASON_IP_USED
    assert set(store.trials) == {"device-1"}
    assert len(store.subscriptions) == 1
