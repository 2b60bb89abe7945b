"""Discord adapter.

Binds the role panel core to ``discord.py``: guild access, UI builders and
interaction translation.
"""

from __future__ import annotations

from .bot import RolePanelBot
from .guild import DiscordGuild
from .handlers import DiscordInteractionContext

__all__ = ["DiscordGuild", "DiscordInteractionContext", "RolePanelBot"]
