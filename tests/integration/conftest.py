from __future__ import annotations

import pytest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from parkmate.core.integration_db_safety import (
    assert_safe_integration_db,
    integration_db_skip_reason,
)
from parkmate.db.session import engine

TRUNCATE_TABLES = (
    "sms_dispatches",
    "automation_schedules",
    "vehicles",
    "villas",
    "code_redemptions",
    "subscriptions",
    "trial_devices",
    "activation_codes",
)

TRUNCATE_SQL = f"TRUNCATE TABLE {', '.join(TRUNCATE_TABLES)} RESTART IDENTITY CASCADE"


@pytest.fixture(scope="session", autouse=True)
def guard_integration_db_target() -> None:
    skip_reason = integration_db_skip_reason(str(engine.url))
    if skip_reason is not None:
        pytest.skip(skip_reason)


@pytest.fixture(autouse=True)
async def cleanup_db() -> None:
    # Pooled asyncpg connections are bound to the loop that opened them.
    await engine.dispose()

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:  # pragma: no cover - environment-dependent
        pytest.skip(f"Postgres is required for integration tests: {exc}")

    assert_safe_integration_db(str(engine.url))
    async with engine.begin() as conn:
        await conn.execute(text(TRUNCATE_SQL))

    yield

    await engine.dispose()
