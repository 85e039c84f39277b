"""Periodic exchange-rate refresh."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class RateRefreshScheduler:
    """Runs a refresh once at start and then every ``interval_hours``.

    Usage:
        scheduler = RateRefreshScheduler(service.refresh, interval_hours=24)
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(self, refresh: Callable[[], Awaitable[bool]], interval_hours: float = 24):
        if interval_hours <= 0:
            raise ValueError("interval_hours must be > 0")
        self._refresh = refresh
        self.interval_seconds = interval_hours * 3600
        self._task: Optional[asyncio.Task[None]] = None
        self._shutdown = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> bool:
        """Run a single refresh. Failures are logged, never raised."""
        try:
            ok = await self._refresh()
        except Exception as e:
            logger.error(f"Exchange rate refresh raised: {e}")
            return False
        if not ok:
            logger.warning("Exchange rate refresh did not update rates")
        return bool(ok)

    async def _refresh_loop(self) -> None:
        """Background task refreshing rates until stopped."""
        while not self._shutdown:
            try:
                await self.run_once()
                await asyncio.sleep(self.interval_seconds)
            except asyncio.CancelledError:
                break

    async def start(self) -> None:
        if self.is_running:
            return
        self._shutdown = False
        self._task = asyncio.create_task(self._refresh_loop())
        logger.info(f"Exchange rate scheduler started, interval={self.interval_seconds / 3600:g}h")

    async def stop(self) -> None:
        self._shutdown = True
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Exchange rate scheduler stopped")
