"""Discord client subclass that owns the role panel runtime objects."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import discord
from discord.ext import commands

from ...dispatcher import InteractionDispatcher
from ...models import FlushPolicy
from ...registry import RoleMapRegistry
from ...scheduler import FlushScheduler
from ...service import RolePanelService
from .handlers import DiscordInteractionContext, button_press

logger = logging.getLogger(__name__)


class RolePanelBot(commands.Bot):
    """Holds the registry, service and dispatcher for one process."""

    def __init__(
        self,
        registry: RoleMapRegistry,
        service: RolePanelService,
        dispatcher: InteractionDispatcher,
        *,
        flush_interval_seconds: float = 30.0,
        intents: Optional[discord.Intents] = None,
        application_id: Optional[int] = None,
    ) -> None:
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents or discord.Intents.default(),
            application_id=application_id,
        )
        self.registry = registry
        self.role_service = service
        self.dispatcher = dispatcher
        self.flush_interval_seconds = flush_interval_seconds
        self.flusher: Optional[FlushScheduler] = None

    async def setup_hook(self) -> None:
        if self.registry.policy is FlushPolicy.PERIODIC and self.flusher is None:
            self.flusher = FlushScheduler(
                self.registry,
                interval_seconds=self.flush_interval_seconds,
                event_loop=asyncio.get_running_loop(),
            )
            self.flusher.start()

    async def on_ready(self) -> None:
        logger.info("Reaction role bot connected as %s", self.user)
        try:
            synced = await self.tree.sync()
            logger.info("Synced %d global commands", len(synced))
        except Exception as exc:
            logger.exception("Failed to sync commands: %s", exc)
        logger.info("Role map file: %s", self.registry.store.path)

    async def on_interaction(self, interaction: discord.Interaction) -> None:
        request = button_press(interaction)
        if request is None:
            return
        await self.dispatcher.dispatch(request, DiscordInteractionContext(interaction))

    async def close(self) -> None:
        if self.flusher is not None:
            self.flusher.shutdown()
            self.flusher = None
        await self.registry.drain()
        self.registry.close()
        await super().close()


__all__ = ["RolePanelBot"]
