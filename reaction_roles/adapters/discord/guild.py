"""``GuildPort`` implementation backed by a ``discord.Guild``."""

from __future__ import annotations

import logging
from typing import Dict, Optional

import discord

from ...models import BotMemberRef, MemberRef, RoleRef

logger = logging.getLogger(__name__)


def _snowflake(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed snowflake %r", value)
        return None


def role_ref(role: discord.Role) -> RoleRef:
    return RoleRef(id=str(role.id), name=role.name, position=role.position)


def member_ref(member: discord.Member) -> MemberRef:
    return MemberRef(id=str(member.id), role_ids=frozenset(str(role.id) for role in member.roles))


class DiscordGuild:
    """Exposes one guild's roles and members to the toggle logic.

    Members fetched through :meth:`fetch_member` are kept for the lifetime of
    this object so the following role change applies to the same record.
    """

    def __init__(self, guild: discord.Guild) -> None:
        self._guild = guild
        self._members: Dict[str, discord.Member] = {}

    @property
    def id(self) -> str:
        return str(self._guild.id)

    def get_role(self, role_id: str) -> Optional[RoleRef]:
        snowflake = _snowflake(role_id)
        if snowflake is None:
            return None
        role = self._guild.get_role(snowflake)
        return role_ref(role) if role is not None else None

    def me(self) -> Optional[BotMemberRef]:
        me = self._guild.me
        if me is None:
            return None
        return BotMemberRef(
            can_manage_roles=me.guild_permissions.manage_roles,
            top_role_position=me.top_role.position,
        )

    async def fetch_member(self, user_id: str) -> MemberRef:
        member = await self._guild.fetch_member(int(user_id))
        self._members[user_id] = member
        return member_ref(member)

    async def _member(self, user_id: str) -> discord.Member:
        member = self._members.get(user_id)
        if member is None:
            member = await self._guild.fetch_member(int(user_id))
            self._members[user_id] = member
        return member

    async def add_role(self, user_id: str, role_id: str, *, reason: str) -> None:
        member = await self._member(user_id)
        await member.add_roles(discord.Object(id=int(role_id)), reason=reason)

    async def remove_role(self, user_id: str, role_id: str, *, reason: str) -> None:
        member = await self._member(user_id)
        await member.remove_roles(discord.Object(id=int(role_id)), reason=reason)


__all__ = ["DiscordGuild", "member_ref", "role_ref"]
