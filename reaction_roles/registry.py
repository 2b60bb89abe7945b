"""In-memory role map registry mirrored to the role map file."""
from __future__ import annotations

import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional, Set

from .models import FlushPolicy
from .store import RoleMaps, RoleMapStore

logger = logging.getLogger(__name__)


class RoleMapRegistry:
    """Owns the guild -> button -> role mapping for the running process.

    Mutations go through :meth:`assign` only. Each mutation is one synchronous
    dict assignment; the write to disk follows according to ``policy``.

    Every assign bumps a generation counter. A save marks the registry clean
    only up to the generation its snapshot was taken at, so a save that
    finishes after a newer assign leaves the registry dirty.
    """

    def __init__(
        self,
        store: RoleMapStore,
        maps: Optional[RoleMaps] = None,
        *,
        policy: FlushPolicy = FlushPolicy.SYNC,
    ) -> None:
        self._store = store
        self._maps: RoleMaps = maps if maps is not None else {}
        self._policy = policy
        self._generation = 0
        self._saved_generation = 0
        self._pending: Set[asyncio.Future] = set()
        self._executor: Optional[ThreadPoolExecutor] = None

    @classmethod
    def from_store(
        cls, store: RoleMapStore, *, policy: FlushPolicy = FlushPolicy.SYNC
    ) -> "RoleMapRegistry":
        return cls(store, store.load(), policy=policy)

    @property
    def store(self) -> RoleMapStore:
        return self._store

    @property
    def policy(self) -> FlushPolicy:
        return self._policy

    @property
    def dirty(self) -> bool:
        return self._generation != self._saved_generation

    def role_for(self, guild_id: str, button_id: str) -> Optional[str]:
        return self._maps.get(guild_id, {}).get(button_id)

    def guild_mappings(self, guild_id: str) -> Dict[str, str]:
        return dict(self._maps.get(guild_id, {}))

    def snapshot(self) -> RoleMaps:
        return {guild_id: dict(buttons) for guild_id, buttons in self._maps.items()}

    def assign(self, guild_id: str, button_id: str, role_id: str) -> Optional[str]:
        """Map ``button_id`` to ``role_id`` in a guild; return the replaced role id."""

        buttons = self._maps.setdefault(guild_id, {})
        previous = buttons.get(button_id)
        buttons[button_id] = role_id
        self._generation += 1
        logger.info(
            "Guild %s: %s -> role %s (was %s)", guild_id, button_id, role_id, previous
        )
        self._schedule_flush()
        return previous

    def _schedule_flush(self) -> None:
        if self._policy is FlushPolicy.PERIODIC:
            return
        if self._policy is FlushPolicy.ASYNC:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("No running loop; flushing role maps inline")
            else:
                if self._executor is None:
                    # One worker keeps saves in assign order.
                    self._executor = ThreadPoolExecutor(
                        max_workers=1, thread_name_prefix="role-map-save"
                    )
                future = loop.run_in_executor(
                    self._executor, self._store.save, self.snapshot()
                )
                self._pending.add(future)
                future.add_done_callback(
                    functools.partial(self._on_background_save, self._generation)
                )
                return
        self.flush()

    def _mark_saved(self, generation: int) -> None:
        if generation > self._saved_generation:
            self._saved_generation = generation

    def _on_background_save(self, generation: int, future: asyncio.Future) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Background role map save raised", exc_info=exc)
        elif future.result():
            self._mark_saved(generation)

    def flush(self) -> bool:
        """Write the current mapping to disk now."""

        generation = self._generation
        saved = self._store.save(self.snapshot())
        if saved:
            self._mark_saved(generation)
        return saved

    def flush_pending(self) -> bool:
        """Write only when there are unsaved changes."""

        if not self.dirty:
            return False
        return self.flush()

    async def drain(self) -> None:
        """Wait for background saves started by the async policy."""

        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self.flush_pending()


__all__ = ["RoleMapRegistry"]
