"""Counting admission gate for external-process invocations.

External tools (ffmpeg, yt-dlp) are CPU and IO heavy; a playlist can
easily request dozens of them at once.  The gate caps how many run
concurrently while letting the rest queue.

The gate is an explicit object owned by whoever builds the runner;
there is no process-wide instance.

Guarantees
----------
* ``available`` never goes negative and never exceeds ``ceiling``.
* A waiter abandoned via its cancel event holds no slot.
* Task cancellation while waiting never leaks a slot.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from ytd_audio.exceptions import AdmissionGateError

log = logging.getLogger(__name__)

DEFAULT_LIMIT: int = 5
DEFAULT_CEILING: int = 10


class AdmissionGate:
    """Semaphore-like limiter bounding concurrently running invocations.

    Parameters
    ----------
    limit:
        Slots available at construction, i.e. the concurrency cap.
    ceiling:
        Most slots the gate may ever hold.  Releasing past it is a
        programming error and raises :class:`AdmissionGateError`.
    """

    def __init__(self, limit: int = DEFAULT_LIMIT, ceiling: int = DEFAULT_CEILING) -> None:
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        if ceiling < limit:
            raise ValueError(f"ceiling ({ceiling}) must be >= limit ({limit})")
        self._limit = limit
        self._ceiling = ceiling
        self._available = limit
        self._in_use = 0
        self._peak_in_use = 0
        self._semaphore = asyncio.Semaphore(limit)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def ceiling(self) -> int:
        return self._ceiling

    @property
    def available(self) -> int:
        """Slots that can be acquired right now without waiting."""
        return self._available

    @property
    def in_use(self) -> int:
        return self._in_use

    @property
    def peak_in_use(self) -> int:
        """Highest number of simultaneously held slots observed."""
        return self._peak_in_use

    def __repr__(self) -> str:
        return (
            f"AdmissionGate(limit={self._limit}, ceiling={self._ceiling}, "
            f"available={self._available})"
        )

    # ------------------------------------------------------------------
    # Acquire / release
    # ------------------------------------------------------------------

    async def acquire(self, cancel_event: asyncio.Event | None = None) -> bool:
        """Wait for a free slot.

        Returns ``True`` once a slot is held, or ``False`` when
        *cancel_event* fired before one became free.  Callers never
        fail fast: they queue until a slot frees or they are cancelled.
        """
        if cancel_event is None:
            await self._semaphore.acquire()
            self._take()
            return True

        if cancel_event.is_set():
            return False

        acquiring = asyncio.ensure_future(self._semaphore.acquire())
        cancelled = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({acquiring, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            cancelled.cancel()
            await self._abandon(acquiring)
            raise
        cancelled.cancel()

        if not acquiring.done():
            await self._abandon(acquiring)
            log.debug("Admission wait abandoned by cancel event")
            return False

        self._take()
        return True

    def release(self) -> None:
        """Return one slot to the gate."""
        if self._available >= self._ceiling:
            raise AdmissionGateError(
                f"Admission gate released past its ceiling of {self._ceiling}.",
            )
        self._available += 1
        self._in_use = max(0, self._in_use - 1)
        self._semaphore.release()

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold one slot for the duration of the ``async with`` block."""
        await self.acquire()
        try:
            yield
        finally:
            self.release()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _take(self) -> None:
        self._available -= 1
        self._in_use += 1
        self._peak_in_use = max(self._peak_in_use, self._in_use)

    async def _abandon(self, acquiring: asyncio.Future[bool]) -> None:
        """Cancel a pending semaphore acquisition without leaking a slot."""
        acquiring.cancel()
        await asyncio.wait({acquiring})
        if not acquiring.cancelled():
            # Acquired in the same loop iteration the wait was abandoned.
            self._semaphore.release()
