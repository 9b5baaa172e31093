"""Slow query logging for the Booker database engine."""

import logging
import time
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


def setup_query_monitoring(engine: AsyncEngine, slow_query_threshold: float = 0.1) -> None:
    """Log a warning for every statement slower than ``slow_query_threshold`` seconds.

    Args:
        engine: Async engine whose underlying sync engine receives the listeners.
        slow_query_threshold: Threshold in seconds (default: 0.1s = 100ms).
    """

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def receive_before_cursor_execute(
        conn: Any,
        cursor: Any,
        statement: str,
        parameters: Any,
        context: Any,
        executemany: bool,
    ) -> None:
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine.sync_engine, "after_cursor_execute")
    def receive_after_cursor_execute(
        conn: Any,
        cursor: Any,
        statement: str,
        parameters: Any,
        context: Any,
        executemany: bool,
    ) -> None:
        total = time.time() - conn.info["query_start_time"].pop()
        if total <= slow_query_threshold:
            return

        truncated_statement = statement[:500]
        if len(statement) > 500:
            truncated_statement += "..."

        # Parameters may hold password hashes and are never logged.
        logger.warning(
            f"Slow query detected ({total:.3f}s): {truncated_statement}",
            extra={
                "duration_seconds": total,
                "threshold_seconds": slow_query_threshold,
            },
        )

    logger.debug(
        "Query performance monitoring enabled (slow query threshold: %ss)",
        slow_query_threshold,
    )
