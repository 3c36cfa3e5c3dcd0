from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest

from parkmate.subscriptions import codes as codes_module
from parkmate.subscriptions.codes import ActivationCodeService, reuse_window_deadline
from parkmate.subscriptions.errors import (
    ActivationCodeExpiredError,
    ActivationCodeInvalidFormatError,
    ActivationCodeNotFoundError,
)
from tests.fakes import NOW_UTC, FakeSession, InMemorySubscriptionStore


def _window(monkeypatch, days: int) -> None:
    monkeypatch.setattr(
        codes_module,
        "get_settings",
        lambda: SimpleNamespace(code_reuse_window_days=days),
    )


@pytest.mark.asyncio
async def test_validate_normalizes_input(monkeypatch) -> None:
    store = InMemorySubscriptionStore().install(monkeypatch)
    stored = store.add_code("PK123456AB", duration_days=90)

    result = await ActivationCodeService.validate(FakeSession(), code=" pk123456ab ", now_utc=NOW_UTC)

    assert result is stored


@pytest.mark.asyncio
async def test_validate_rejects_bad_format_before_lookup(monkeypatch) -> None:
    async def _must_not_lookup(session, code):
        raise AssertionError("lookup must not happen for malformed codes")

    monkeypatch.setattr(codes_module.ActivationCodesRepo, "get_by_code", _must_not_lookup)

    with pytest.raises(ActivationCodeInvalidFormatError):
        await ActivationCodeService.validate(FakeSession(), code="PK12", now_utc=NOW_UTC)


@pytest.mark.asyncio
async def test_validate_rejects_unknown_code(monkeypatch) -> None:
    InMemorySubscriptionStore().install(monkeypatch)

    with pytest.raises(ActivationCodeNotFoundError):
        await ActivationCodeService.validate(FakeSession(), code="PK999999ZZ", now_utc=NOW_UTC)


@pytest.mark.asyncio
async def test_validate_rejects_code_past_expiry(monkeypatch) -> None:
    store = InMemorySubscriptionStore().install(monkeypatch)
    store.add_code("PK123456AB", expires_at=NOW_UTC)

    with pytest.raises(ActivationCodeExpiredError):
        await ActivationCodeService.validate(FakeSession(), code="PK123456AB", now_utc=NOW_UTC)


@pytest.mark.asyncio
async def test_validate_accepts_used_code_inside_reuse_window(monkeypatch) -> None:
    _window(monkeypatch, 30)
    store = InMemorySubscriptionStore().install(monkeypatch)
    store.add_code(
        "PK123456AB",
        villa_count=3,
        is_used=True,
        used_by_device_id="device-1",
        used_at=NOW_UTC - timedelta(days=29),
    )

    result = await ActivationCodeService.validate(FakeSession(), code="PK123456AB", now_utc=NOW_UTC)

    assert result.is_used is True


@pytest.mark.asyncio
async def test_validate_rejects_used_code_after_reuse_window(monkeypatch) -> None:
    _window(monkeypatch, 30)
    store = InMemorySubscriptionStore().install(monkeypatch)
    store.add_code(
        "PK123456AB",
        is_used=True,
        used_by_device_id="device-1",
        used_at=NOW_UTC - timedelta(days=30),
    )

    with pytest.raises(ActivationCodeExpiredError):
        await ActivationCodeService.validate(FakeSession(), code="PK123456AB", now_utc=NOW_UTC)


def test_reuse_window_disabled_by_zero(monkeypatch) -> None:
    _window(monkeypatch, 0)
    code = SimpleNamespace(used_at=NOW_UTC - timedelta(days=400))
    assert reuse_window_deadline(code) is None


def test_reuse_window_not_started_for_unused_code(monkeypatch) -> None:
    _window(monkeypatch, 30)
    assert reuse_window_deadline(SimpleNamespace(used_at=None)) is None
