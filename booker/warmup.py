"""Startup warmup for the database pool and the Redis cache.

Failures are logged and never abort startup: a cold database surfaces on the
first request as ``StoreUnavailable`` and a missing Redis only disables the
favorites cache.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


async def warmup_database(
    resolve_engine: Callable[[], AsyncEngine] | None = None,
) -> bool:
    """Open one pooled connection and issue ``SELECT 1``."""

    if resolve_engine is None:
        from booker.db.connection import get_engine as resolve_engine

    start = time.time()
    try:
        engine = resolve_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Database warmup failed: %s", exc)
        return False

    elapsed = (time.time() - start) * 1000
    logger.info("Database connection warmed up (%.0fms)", elapsed)
    return True


async def warmup_redis() -> bool:
    """Establish the shared Redis client; ``get_redis`` already pings it."""

    from booker.cache import get_redis

    start = time.time()
    redis = await get_redis()
    if redis is None:
        logger.info("Redis warmup skipped (connection unavailable)")
        return False

    elapsed = (time.time() - start) * 1000
    logger.info("Redis connection warmed up (%.0fms)", elapsed)
    return True


async def warmup_all(
    resolve_engine: Callable[[], AsyncEngine] | None = None,
) -> None:
    logger.info("=" * 60)
    logger.info("Warming up backend connections...")
    logger.info("=" * 60)

    start = time.time()
    await warmup_database(resolve_engine=resolve_engine)
    await warmup_redis()

    total_elapsed = (time.time() - start) * 1000
    logger.info("Backend warmup complete (%.0fms)", total_elapsed)
