"""Role panel business logic independent of the Discord client."""
from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from .models import (
    BotMemberRef,
    ButtonDefinition,
    ConfigureResult,
    MemberRef,
    Reply,
    RoleRef,
    ToggleOutcome,
    ToggleResult,
)
from .registry import RoleMapRegistry

logger = logging.getLogger(__name__)

SETUP_COMMAND = "rr-setup"
PANEL_COMMAND = "rolespanel"


class GuildPort(Protocol):
    """What the toggle logic needs from a guild."""

    @property
    def id(self) -> str: ...

    def get_role(self, role_id: str) -> Optional[RoleRef]: ...

    def me(self) -> Optional[BotMemberRef]: ...

    async def fetch_member(self, user_id: str) -> MemberRef: ...

    async def add_role(self, user_id: str, role_id: str, *, reason: str) -> None: ...

    async def remove_role(self, user_id: str, role_id: str, *, reason: str) -> None: ...


def _code(value: str) -> str:
    return f"`{value}`"


class RolePanelService:
    """Implements configure, panel and toggle against a role map registry."""

    def __init__(
        self,
        registry: RoleMapRegistry,
        buttons: Sequence[ButtonDefinition],
        *,
        panel_prompt: str = "Pick your roles:",
    ) -> None:
        self.registry = registry
        self.buttons = tuple(buttons)
        self.panel_prompt = panel_prompt

    @property
    def button_ids(self) -> tuple[str, ...]:
        return tuple(button.id for button in self.buttons)

    def configure(
        self,
        guild_id: str,
        button_id: str,
        role: RoleRef,
        *,
        invoker_can_manage_roles: bool,
    ) -> ConfigureResult:
        if not invoker_can_manage_roles:
            return ConfigureResult(ok=False, message="You need **Manage Roles**.")
        valid_ids = self.button_ids
        if button_id not in valid_ids:
            listing = ", ".join(_code(value) for value in valid_ids)
            return ConfigureResult(
                ok=False,
                message=f"Unknown button_id **{button_id}**. Valid IDs: {listing}",
                valid_ids=valid_ids,
            )
        previous = self.registry.assign(guild_id, button_id, role.id)
        return ConfigureResult(
            ok=True,
            message=f"Mapped **{button_id}** → {role.name}",
            previous_role_id=previous,
        )

    def panel(self) -> Reply:
        return Reply(content=self.panel_prompt, ephemeral=False, buttons=self.buttons)

    async def toggle(self, guild: GuildPort, user_id: str, button_id: str) -> ToggleResult:
        """Add or remove the role mapped to ``button_id`` for ``user_id``.

        Every precondition is checked before the member is touched; the first
        failure ends the call with no role change.
        """

        role_id = self.registry.role_for(guild.id, button_id)
        if role_id is None:
            return ToggleResult(
                ToggleOutcome.NOT_CONFIGURED,
                f"This button is not configured. Use `/{SETUP_COMMAND}` first.",
            )

        target = guild.get_role(role_id)
        if target is None:
            logger.info(
                "Guild %s: %s maps to deleted role %s", guild.id, button_id, role_id
            )
            return ToggleResult(
                ToggleOutcome.ROLE_MISSING,
                f"Mapped role no longer exists. Re-run `/{SETUP_COMMAND}`.",
                role_id,
            )

        me = guild.me()
        if me is None:
            return ToggleResult(
                ToggleOutcome.BOT_MEMBER_MISSING,
                "Bot member not found in guild.",
                role_id,
            )

        if not me.can_manage_roles:
            return ToggleResult(
                ToggleOutcome.MISSING_PERMISSION,
                "I need **Manage Roles** permission to do that.",
                role_id,
            )

        if me.top_role_position <= target.position:
            return ToggleResult(
                ToggleOutcome.HIERARCHY,
                f"I can't manage **{target.name}**. Move my bot role above it in "
                "**Server Settings → Roles**.",
                role_id,
            )

        member = await guild.fetch_member(user_id)
        reason = f"Reaction role panel button {button_id}"
        if member.has_role(role_id):
            await guild.remove_role(user_id, role_id, reason=reason)
            return ToggleResult(ToggleOutcome.REMOVED, "Role removed.", role_id)
        await guild.add_role(user_id, role_id, reason=reason)
        return ToggleResult(ToggleOutcome.ADDED, "Role added.", role_id)


__all__ = ["GuildPort", "PANEL_COMMAND", "RolePanelService", "SETUP_COMMAND"]
