"""Periodic role map flushing for the ``periodic`` flush policy."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from .registry import RoleMapRegistry
from .telemetry import get_telemetry

logger = logging.getLogger(__name__)


class FlushScheduler:
    """Writes pending registry changes on a fixed interval.

    The job is a coroutine, so APScheduler runs it on the bot's event loop
    instead of a worker thread and a flush never interleaves with a
    registry mutation.
    """

    JOB_ID = "role-map-flush"

    def __init__(
        self,
        registry: RoleMapRegistry,
        *,
        interval_seconds: float = 30.0,
        event_loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.registry = registry
        self.interval_seconds = interval_seconds
        self._event_loop = event_loop
        self._scheduler = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        if self._scheduler is not None:
            return
        if self._event_loop is not None:
            scheduler = AsyncIOScheduler(event_loop=self._event_loop)
        else:
            scheduler = AsyncIOScheduler()
        scheduler.add_job(
            self._run,
            "interval",
            seconds=self.interval_seconds,
            id=self.JOB_ID,
            coalesce=True,
            max_instances=1,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("Flushing role maps every %.0f seconds", self.interval_seconds)

    def shutdown(self) -> None:
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
        self._flush()

    async def _run(self) -> None:
        self._flush()

    def _flush(self) -> None:
        if not self.registry.dirty:
            return
        if self.registry.flush_pending():
            logger.debug("Periodic role map flush complete")
            return
        logger.warning("Periodic role map flush failed; will retry")
        get_telemetry().track_system_event(
            "role_map_flush_failed", source="scheduler", reason=str(self.registry.store.path)
        )


__all__ = ["FlushScheduler", "AsyncIOScheduler"]
