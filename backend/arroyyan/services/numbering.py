"""
Arroyyan Backend — Document Number Allocation
===============================================

What:  Generates human-readable document numbers:

           INV-20250314-482   sales
           TRF-20250314-107   stock transfers
           SUP-20250314-733   supply orders

How:   PREFIX-YYYYMMDD-NNN with a random 3-digit suffix (100..999). The
       candidate is checked against the table inside the current
       transaction; on a collision tenacity retries with a fresh suffix.
       After `max_attempts` collisions the allocation fails with a
       ConflictError (the day is nearly exhausted for that prefix).

The unique constraint on each number column still guards the race where two
concurrent requests pick the same free suffix; the loser's transaction fails
with IntegrityError (mapped to 409) and rolls back cleanly.
"""

import logging
import random
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_none,
)

from arroyyan.exceptions import ConflictError

logger = logging.getLogger(__name__)

SALE_PREFIX = "INV"
TRANSFER_PREFIX = "TRF"
SUPPLY_PREFIX = "SUP"


class NumberCollision(Exception):
    """The generated candidate already exists."""

    def __init__(self, candidate: str):
        super().__init__(candidate)
        self.candidate = candidate


def format_number(prefix: str, on: date, suffix: int) -> str:
    return f"{prefix}-{on.strftime('%Y%m%d')}-{suffix:03d}"


class DocumentNumberAllocator:
    def __init__(self, max_attempts: int = 10):
        self.max_attempts = max_attempts

    async def allocate(
        self,
        db: AsyncSession,
        column: InstrumentedAttribute,
        prefix: str,
        on: date,
    ) -> str:
        """
        Returns a number for `prefix` and `on` not yet present in `column`.

        Raises:
            ConflictError: every attempt collided
        """
        attempt = retry(
            retry=retry_if_exception_type(NumberCollision),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_none(),
            before_sleep=before_sleep_log(logger, logging.DEBUG),
        )(self._try_once)

        try:
            return await attempt(db, column, prefix, on)
        except RetryError as e:
            logger.error(
                "Could not allocate a %s number for %s after %d attempts",
                prefix,
                on.isoformat(),
                self.max_attempts,
            )
            raise ConflictError(
                message=f"Could not allocate a unique {prefix} number, please retry",
                context={"prefix": prefix, "date": on.isoformat()},
            ) from e

    async def _try_once(
        self,
        db: AsyncSession,
        column: InstrumentedAttribute,
        prefix: str,
        on: date,
    ) -> str:
        candidate = format_number(prefix, on, random.randint(100, 999))
        result = await db.execute(select(column).where(column == candidate).limit(1))
        if result.scalar_one_or_none() is not None:
            raise NumberCollision(candidate)
        return candidate


number_allocator = DocumentNumberAllocator()
