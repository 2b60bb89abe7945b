"""Tests for translating discord.py objects into role panel requests."""
from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from reaction_roles.adapters.discord.builders import build_panel_view
from reaction_roles.adapters.discord.guild import DiscordGuild
from reaction_roles.adapters.discord.handlers import (
    DiscordInteractionContext,
    button_press,
    configure_request,
    panel_request,
)
from reaction_roles.models import Reply


def _component_interaction(custom_id="rr_raider", guild_id=100, component_type=2):
    return SimpleNamespace(
        type=discord.InteractionType.component,
        guild_id=guild_id,
        user=SimpleNamespace(id=42),
        data={"component_type": component_type, "custom_id": custom_id},
    )


def test_button_press_translation():
    request = button_press(_component_interaction())

    assert request.guild_id == "100"
    assert request.user_id == "42"
    assert request.custom_id == "rr_raider"


@pytest.mark.parametrize(
    "interaction",
    [
        _component_interaction(guild_id=None),
        _component_interaction(component_type=3),
        _component_interaction(custom_id=""),
        SimpleNamespace(type=discord.InteractionType.application_command, guild_id=1, data={}),
    ],
)
def test_non_button_or_direct_message_interactions_are_ignored(interaction):
    assert button_press(interaction) is None


def test_configure_request_reads_invoker_permissions():
    member = MagicMock(spec=discord.Member)
    member.id = 7
    member.guild_permissions.manage_roles = True
    interaction = SimpleNamespace(guild_id=100, user=member)
    role = SimpleNamespace(id=555, name="Raider", position=4)

    request = configure_request(interaction, " rr_raider ", role)

    assert request.invoker_can_manage_roles is True
    assert request.button_id == "rr_raider"
    assert request.role.id == "555"
    assert request.role.position == 4


def test_configure_request_from_plain_user_cannot_manage():
    interaction = SimpleNamespace(guild_id=100, user=SimpleNamespace(id=7))
    role = SimpleNamespace(id=555, name="Raider", position=4)

    assert configure_request(interaction, "rr_raider", role).invoker_can_manage_roles is False


def test_panel_request_outside_guild_is_ignored():
    assert panel_request(SimpleNamespace(guild_id=None, user=SimpleNamespace(id=1))) is None


def _fake_guild(member, roles=None, me=None):
    roles = roles or {}
    return SimpleNamespace(
        id=100,
        get_role=lambda snowflake: roles.get(snowflake),
        me=me,
        fetch_member=AsyncMock(return_value=member),
    )


@pytest.mark.asyncio
async def test_discord_guild_fetches_fresh_member_and_changes_roles():
    member = SimpleNamespace(
        id=42,
        roles=[SimpleNamespace(id=1), SimpleNamespace(id=555)],
        add_roles=AsyncMock(),
        remove_roles=AsyncMock(),
    )
    raw_guild = _fake_guild(member)
    guild = DiscordGuild(raw_guild)

    ref = await guild.fetch_member("42")
    await guild.remove_role("42", "555", reason="panel")

    assert ref.has_role("555")
    raw_guild.fetch_member.assert_awaited_once_with(42)
    args, kwargs = member.remove_roles.call_args
    assert args[0].id == 555
    assert kwargs["reason"] == "panel"


def test_discord_guild_role_and_bot_lookup():
    me = SimpleNamespace(
        guild_permissions=SimpleNamespace(manage_roles=True),
        top_role=SimpleNamespace(position=9),
    )
    raw_guild = _fake_guild(
        None, roles={555: SimpleNamespace(id=555, name="Raider", position=4)}, me=me
    )
    guild = DiscordGuild(raw_guild)

    assert guild.id == "100"
    assert guild.get_role("555").name == "Raider"
    assert guild.get_role("999") is None
    assert guild.get_role("not-a-snowflake") is None
    bot = guild.me()
    assert bot.can_manage_roles is True
    assert bot.top_role_position == 9


def test_discord_guild_without_bot_member():
    assert DiscordGuild(_fake_guild(None, me=None)).me() is None


@pytest.mark.asyncio
async def test_panel_view_preserves_order_and_styles(settings):
    view = build_panel_view(settings.buttons)

    assert [item.custom_id for item in view.children] == ["rr_raider", "rr_farmer", "rr_trader"]
    assert [item.style for item in view.children] == [
        discord.ButtonStyle.primary,
        discord.ButtonStyle.success,
        discord.ButtonStyle.secondary,
    ]
    assert view.timeout is None


@pytest.mark.asyncio
async def test_context_reply_sends_panel_view(settings):
    response = SimpleNamespace(send_message=AsyncMock(), is_done=lambda: False)
    interaction = SimpleNamespace(response=response, guild=None, is_expired=lambda: False)
    context = DiscordInteractionContext(interaction)

    assert context.responded is False
    assert context.guild is None
    await context.reply(Reply("Pick your roles:", ephemeral=False, buttons=settings.buttons))

    args, kwargs = response.send_message.call_args
    assert args == ("Pick your roles:",)
    assert kwargs["ephemeral"] is False
    assert len(kwargs["view"].children) == 3


@pytest.mark.asyncio
async def test_context_reply_without_buttons_sends_plain_message():
    response = SimpleNamespace(send_message=AsyncMock(), is_done=lambda: True)
    interaction = SimpleNamespace(response=response, guild=None, is_expired=lambda: False)
    context = DiscordInteractionContext(interaction)

    await context.reply(Reply("Role added."))

    response.send_message.assert_awaited_once_with("Role added.", ephemeral=True)
    assert context.responded is True
