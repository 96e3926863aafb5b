"""
Batch Prefetcher - Concurrent, fault-tolerant batch loading.

For each slot, independently and concurrently:
1. Up to max_retries fetch-and-validate cycles, each with a fresh
   cache-busting token
2. On the first valid payload, store it in the arena and resolve the slot
3. Between failed attempts, back off linearly (attempt x backoff_step)
4. After the last failure, resolve to the source's fallback reference

prefetch_batch() is total: it always returns exactly `count` items ordered by
slot index, whatever the network does.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable
import asyncio
import logging
import time

from ..engine_core.state import ImageItem
from ..errors import FetchFailure, ValidationFailure
from .arena import ResourceArena
from .source import ImageSource, cache_bust_token
from .validator import ImageValidator


logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_STEP = 1.0


class AttemptOutcome(Enum):
    """Result of a single fetch-and-validate cycle."""
    SUCCESS = "success"
    INVALID = "invalid"
    NETWORK_FAILURE = "network_failure"


@dataclass(frozen=True)
class FetchAttempt:
    """One cycle for one slot. Only lives until the slot resolves."""
    slot_index: int
    attempt_number: int
    outcome: AttemptOutcome
    handle: str | None = None
    error: str | None = None


class BatchPrefetcher:
    """
    Loads a batch of images concurrently.

    Usage:
        prefetcher = BatchPrefetcher(HttpImageSource())
        arena = ResourceArena()
        items = await prefetcher.prefetch_batch(15, arena)
    """

    def __init__(
        self,
        source: ImageSource,
        validator: ImageValidator | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_step: float = DEFAULT_BACKOFF_STEP,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.source = source
        self.validator = validator or ImageValidator()
        self.max_retries = max_retries
        self.backoff_step = backoff_step
        self._sleep = sleep
        self._clock = clock

    async def prefetch_batch(self, count: int, arena: ResourceArena) -> list[ImageItem]:
        """Resolve `count` slots concurrently; never fails on slot errors."""
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")

        logger.info("Prefetching %d images", count)
        items = await asyncio.gather(
            *(self.resolve_slot(i, arena) for i in range(count))
        )

        fallbacks = sum(1 for item in items if item.is_fallback)
        logger.info("Prefetched %d images (%d fallbacks)", len(items), fallbacks)
        return list(items)

    async def resolve_slot(self, slot_index: int, arena: ResourceArena) -> ImageItem:
        """Run the retry loop for one slot."""
        for attempt_number in range(1, self.max_retries + 1):
            attempt = await self._attempt(slot_index, attempt_number, arena)

            if attempt.outcome == AttemptOutcome.SUCCESS:
                return ImageItem(
                    id=slot_index,
                    handle=attempt.handle,
                    acquired_at=self._clock(),
                    is_fallback=False,
                )

            logger.debug(
                "Attempt %d failed for slot %d (%s): %s",
                attempt_number, slot_index, attempt.outcome.value, attempt.error,
            )
            if attempt_number < self.max_retries:
                await self._sleep(attempt_number * self.backoff_step)

        logger.warning(
            "Slot %d exhausted %d attempts, using fallback",
            slot_index, self.max_retries,
        )
        return ImageItem(
            id=slot_index,
            handle=self.source.fallback_reference(slot_index),
            acquired_at=self._clock(),
            is_fallback=True,
        )

    async def _attempt(
        self,
        slot_index: int,
        attempt_number: int,
        arena: ResourceArena,
    ) -> FetchAttempt:
        """One fetch-and-validate cycle."""
        try:
            payload = await self.source.fetch(cache_bust_token())
        except FetchFailure as e:
            return FetchAttempt(
                slot_index, attempt_number, AttemptOutcome.NETWORK_FAILURE, error=str(e)
            )
        except Exception as e:
            # Sources may leak transport errors; a slot never fails the batch
            logger.warning(
                "Unexpected error fetching slot %d: %r", slot_index, e, exc_info=True
            )
            return FetchAttempt(
                slot_index, attempt_number, AttemptOutcome.NETWORK_FAILURE, error=repr(e)
            )

        try:
            media_type = await self.validator.validate(payload)
        except ValidationFailure as e:
            return FetchAttempt(
                slot_index, attempt_number, AttemptOutcome.INVALID, error=str(e)
            )

        handle = arena.allocate(payload, media_type)
        return FetchAttempt(slot_index, attempt_number, AttemptOutcome.SUCCESS, handle=handle)
