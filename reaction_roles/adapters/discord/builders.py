"""Discord UI builders.

Pure construction helpers for Discord components, kept apart from the
handlers so they are easy to unit test.
"""

from __future__ import annotations

from typing import Iterable

import discord

from ...models import ButtonDefinition, ButtonStyle

_STYLES = {
    ButtonStyle.PRIMARY: discord.ButtonStyle.primary,
    ButtonStyle.SECONDARY: discord.ButtonStyle.secondary,
    ButtonStyle.SUCCESS: discord.ButtonStyle.success,
    ButtonStyle.DANGER: discord.ButtonStyle.danger,
}

_MAX_MESSAGE_LENGTH = 1900


def _clamp_text(text: str) -> str:
    """Ensure Discord-compatible message length."""

    if len(text) <= _MAX_MESSAGE_LENGTH:
        return text
    return text[: _MAX_MESSAGE_LENGTH - 1].rstrip() + "…"


def discord_style(style: ButtonStyle) -> discord.ButtonStyle:
    return _STYLES[style]


def build_panel_view(buttons: Iterable[ButtonDefinition]) -> discord.ui.View:
    """One row of buttons, one per definition, in declaration order.

    The buttons carry no callbacks; presses arrive as component interactions
    and are routed by ``custom_id``.
    """

    view = discord.ui.View(timeout=None)
    for button in buttons:
        view.add_item(
            discord.ui.Button(
                style=discord_style(button.style),
                label=button.label,
                custom_id=button.id,
                row=0,
            )
        )
    return view


__all__ = ["_clamp_text", "build_panel_view", "discord_style"]
