from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from parkmate.db.session import dispose_engine

T = TypeVar("T")


async def _with_fresh_pool(awaitable: Awaitable[T]) -> T:
    # Each asyncio.run gets a new loop; pooled asyncpg connections must not cross loops.
    await dispose_engine()
    try:
        return await awaitable
    finally:
        await dispose_engine()


def run_async_job(awaitable: Awaitable[T]) -> T:
    return asyncio.run(_with_fresh_pool(awaitable))
