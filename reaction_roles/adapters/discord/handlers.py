"""Translate ``discord.Interaction`` objects into role panel requests."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import discord

from ...models import ButtonPress, ConfigureRequest, PanelRequest, Reply
from .builders import _clamp_text, build_panel_view
from .guild import DiscordGuild, role_ref

logger = logging.getLogger(__name__)


def _can_manage_roles(interaction: discord.Interaction) -> bool:
    user = interaction.user
    if isinstance(user, discord.Member):
        return user.guild_permissions.manage_roles
    return False


def configure_request(
    interaction: discord.Interaction, button_id: str, role: discord.Role
) -> Optional[ConfigureRequest]:
    if interaction.guild_id is None:
        return None
    return ConfigureRequest(
        guild_id=str(interaction.guild_id),
        user_id=str(interaction.user.id),
        invoker_can_manage_roles=_can_manage_roles(interaction),
        button_id=button_id.strip(),
        role=role_ref(role),
    )


def panel_request(interaction: discord.Interaction) -> Optional[PanelRequest]:
    if interaction.guild_id is None:
        return None
    return PanelRequest(guild_id=str(interaction.guild_id), user_id=str(interaction.user.id))


def button_press(interaction: discord.Interaction) -> Optional[ButtonPress]:
    """Return a request for button presses in a guild, ``None`` for anything else."""

    if interaction.type is not discord.InteractionType.component:
        return None
    if interaction.guild_id is None:
        return None
    data = interaction.data or {}
    if data.get("component_type") != discord.ComponentType.button.value:
        return None
    custom_id = data.get("custom_id")
    if not custom_id:
        return None
    return ButtonPress(
        guild_id=str(interaction.guild_id),
        user_id=str(interaction.user.id),
        custom_id=str(custom_id),
    )


class DiscordInteractionContext:
    """Sends the single reply of one interaction."""

    def __init__(self, interaction: discord.Interaction) -> None:
        self._interaction = interaction

    @property
    def responded(self) -> bool:
        return self._interaction.response.is_done() or self._interaction.is_expired()

    @property
    def guild(self) -> Optional[DiscordGuild]:
        guild = self._interaction.guild
        return DiscordGuild(guild) if guild is not None else None

    async def reply(self, reply: Reply) -> None:
        kwargs: Dict[str, Any] = {"ephemeral": reply.ephemeral}
        view = build_panel_view(reply.buttons) if reply.buttons else None
        if view is not None:
            kwargs["view"] = view
        await self._interaction.response.send_message(_clamp_text(reply.content), **kwargs)
        if view is not None:
            # Presses are routed by custom_id, not through the view store.
            view.stop()


__all__ = [
    "DiscordInteractionContext",
    "button_press",
    "configure_request",
    "panel_request",
]
