"""
Retrying transaction runner for allocation writes.

CONCURRENCY STRATEGY: Optimistic Locking with Whole-Transaction Retry
======================================================================

Every write that changes the seat ledger of an event (register, cancel,
waitlist withdrawal, close/reopen) first bumps the event's `version`:

  UPDATE events SET version = version + 1, ...
  WHERE id = :event_id AND version = :version_seen_by_this_attempt

If the row count is 0 another writer committed first. The work function
raises WriteConflict, the transaction rolls back and the work function is
re-run from a fresh snapshot in a brand new session.

Because all reads the work function makes (duplicate checks, waitlist head,
max waitlist position) are validated by that single version check, the
commit is equivalent to a serializable execution for that event.

Unique-constraint races (IntegrityError) and database lock timeouts
(OperationalError) are retried the same way. When the budget runs out the
caller gets TransientFailure, which is always safe to retry.
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from seatsync.core.config import get_settings
from seatsync.core.exceptions import TransientFailure
from seatsync.core.logging import get_logger
from seatsync.core.metrics import record_retry

logger = get_logger(__name__)

T = TypeVar("T")


class WriteConflict(Exception):
    """The event row changed since this attempt read it."""

    def __init__(self, event_id: int):
        self.event_id = event_id
        super().__init__(f"Event {event_id} was modified concurrently")


async def run_in_transaction(
    session_factory: async_sessionmaker[AsyncSession],
    work: Callable[[AsyncSession], Awaitable[T]],
    *,
    operation: str,
    max_attempts: Optional[int] = None,
    backoff_ms: Optional[int] = None,
) -> T:
    """
    Run `work` inside one database transaction, retrying on write conflicts.

    Domain errors raised by `work` roll the transaction back and propagate
    unchanged; they are never retried.
    """
    settings = get_settings()
    max_attempts = max_attempts or settings.ALLOCATION_MAX_RETRIES
    backoff_ms = settings.ALLOCATION_RETRY_BACKOFF_MS if backoff_ms is None else backoff_ms

    for attempt in range(1, max_attempts + 1):
        try:
            async with session_factory() as session:
                async with session.begin():
                    return await work(session)
        except WriteConflict as e:
            reason, detail = "version_conflict", str(e)
        except IntegrityError as e:
            reason, detail = "integrity_error", str(e.orig)
        except OperationalError as e:
            reason, detail = "operational_error", str(e.orig)

        record_retry(reason)
        logger.info(
            "allocation_retry",
            operation=operation,
            attempt=attempt,
            reason=reason,
            detail=detail,
        )
        if attempt == max_attempts:
            break
        # Jittered linear backoff so colliding writers spread out
        await asyncio.sleep(backoff_ms * attempt * random.uniform(0.5, 1.5) / 1000)

    logger.warning("allocation_retries_exhausted", operation=operation, attempts=max_attempts)
    raise TransientFailure()
