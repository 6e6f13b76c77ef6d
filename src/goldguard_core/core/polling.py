"""Periodic case refresh.

CasePoller calls a loader on a fixed interval and publishes each result,
guarding against out-of-order completion:

- every tick takes the next sequence number;
- a result is published only if its sequence is newer than the last
  published one;
- starting a tick cancels any older fetch still in flight.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CasePoller(Generic[T]):
    """
    Interval ticker around an async loader.

    Usage:
        poller = CasePoller(reconciler.load, interval=30.0, on_update=render)
        poller.start()
        ...
        await poller.stop()
    """

    def __init__(
        self,
        load: Callable[[], Awaitable[T]],
        interval: float = 30.0,
        on_update: Optional[Callable[[T], None]] = None,
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive (got {interval})")
        self._load = load
        self.interval = interval
        self._on_update = on_update

        self._sequence = 0
        self._published_sequence = 0
        self._latest: Optional[T] = None
        self._inflight: Optional[asyncio.Task] = None
        self._runner: Optional[asyncio.Task] = None

    @property
    def latest(self) -> Optional[T]:
        """Most recently published result, or None before the first one"""
        return self._latest

    @property
    def published_sequence(self) -> int:
        return self._published_sequence

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    def _publish(self, sequence: int, result: T) -> bool:
        if sequence <= self._published_sequence:
            logger.debug(f"Dropping stale poll result #{sequence} (have #{self._published_sequence})")
            return False
        self._published_sequence = sequence
        self._latest = result
        if self._on_update is not None:
            try:
                self._on_update(result)
            except Exception as e:
                logger.error(f"Poll update callback failed: {e}", exc_info=True)
        return True

    async def poll_once(self) -> Optional[T]:
        """
        Run one tick now.

        Returns:
            The result if it was published, None if it was superseded
            (cancelled by a newer tick, or finished after a newer one)
        """
        self._sequence += 1
        sequence = self._sequence

        previous = self._inflight
        if previous is not None and not previous.done():
            logger.debug(f"Cancelling superseded poll before #{sequence}")
            previous.cancel()

        task = asyncio.ensure_future(self._load())
        self._inflight = task
        try:
            result = await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if task.cancelled() and current is not None and not current.cancelling():
                # Superseded by a newer tick; only the fetch was cancelled
                return None
            raise
        finally:
            if self._inflight is task:
                self._inflight = None

        return result if self._publish(sequence, result) else None

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception as e:
                logger.error(f"Case poll failed: {e}", exc_info=True)
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        """Start ticking (first tick immediately). No-op if already running."""
        if self.running:
            return
        logger.info(f"Starting case poller (every {self.interval}s)")
        self._runner = asyncio.ensure_future(self._run())

    async def stop(self) -> None:
        """Stop ticking and cancel any fetch in flight"""
        runner, self._runner = self._runner, None
        inflight, self._inflight = self._inflight, None
        for task in (inflight, runner):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        logger.info("Case poller stopped")

