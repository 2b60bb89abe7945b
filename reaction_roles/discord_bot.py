"""Discord bot entry point for the reaction role panel."""
from __future__ import annotations

import logging
import os
import sys
from typing import List, Optional

import discord
from discord import app_commands
from dotenv import load_dotenv

from .adapters.discord.bot import RolePanelBot
from .adapters.discord.handlers import (
    DiscordInteractionContext,
    configure_request,
    panel_request,
)
from .config import Settings, get_settings
from .dispatcher import InteractionDispatcher
from .registry import RoleMapRegistry
from .service import PANEL_COMMAND, SETUP_COMMAND, RolePanelService
from .store import RoleMapStore
from .telemetry import get_telemetry
from .telemetry_decorator import track_command

logger = logging.getLogger(__name__)


def _application_id() -> Optional[int]:
    app_id_raw = os.environ.get("DISCORD_APP_ID")
    if not app_id_raw:
        return None
    try:
        return int(app_id_raw)
    except ValueError:
        logger.warning("Invalid DISCORD_APP_ID: %s", app_id_raw)
        return None


def build_bot(settings: Settings, intents: Optional[discord.Intents] = None) -> RolePanelBot:
    store = RoleMapStore(settings.data_path)
    registry = RoleMapRegistry.from_store(store, policy=settings.flush_policy)
    service = RolePanelService(
        registry, settings.buttons, panel_prompt=settings.panel_prompt
    )
    dispatcher = InteractionDispatcher(service)
    bot = RolePanelBot(
        registry,
        service,
        dispatcher,
        flush_interval_seconds=settings.flush_interval_seconds,
        intents=intents,
        application_id=_application_id(),
    )
    logger.info(
        "Role maps at %s (flush policy %s)", store.path, settings.flush_policy.value
    )

    @app_commands.command(
        name=SETUP_COMMAND, description="Map a button to a role (requires Manage Roles)"
    )
    @app_commands.guild_only()
    @track_command
    @app_commands.describe(
        button_id=f"Button ID (example: {settings.buttons[0].id})",
        role="Role to toggle",
    )
    async def rr_setup(
        interaction: discord.Interaction, button_id: str, role: discord.Role
    ) -> bool:
        return await dispatcher.dispatch(
            configure_request(interaction, button_id, role),
            DiscordInteractionContext(interaction),
        )

    @rr_setup.autocomplete("button_id")
    async def button_id_autocomplete(
        interaction: discord.Interaction, current: str
    ) -> List[app_commands.Choice[str]]:
        needle = current.lower()
        return [
            app_commands.Choice(name=f"{button.label} ({button.id})", value=button.id)
            for button in settings.buttons
            if needle in button.id.lower() or needle in button.label.lower()
        ]

    @app_commands.command(name=PANEL_COMMAND, description="Post the reaction role panel")
    @app_commands.guild_only()
    @track_command
    async def rolespanel(interaction: discord.Interaction) -> bool:
        return await dispatcher.dispatch(
            panel_request(interaction), DiscordInteractionContext(interaction)
        )

    bot.tree.add_command(rr_setup)
    bot.tree.add_command(rolespanel)
    return bot


def main() -> None:
    load_dotenv()
    logging.basicConfig(
        level=os.environ.get("REACTION_ROLES_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    token = os.environ.get("DISCORD_TOKEN")
    if not token:
        logger.error("Missing DISCORD_TOKEN. Set it in the environment or a local .env file.")
        sys.exit(1)
    settings = get_settings()
    bot = build_bot(settings)
    get_telemetry().track_system_event("startup", source="main")
    try:
        bot.run(token, log_handler=None)
    finally:
        get_telemetry().flush()


__all__ = ["build_bot", "main"]
