"""Tests for interaction dispatch and the failure boundary."""
from __future__ import annotations

import logging

import pytest

from conftest import RAIDER, FakeContext, RecordingTelemetry
from reaction_roles.dispatcher import GENERIC_FAILURE, InteractionDispatcher
from reaction_roles.models import ButtonPress, ConfigureRequest, PanelRequest


@pytest.fixture
def telemetry():
    return RecordingTelemetry()


@pytest.fixture
def dispatcher(service, telemetry):
    return InteractionDispatcher(service, telemetry=telemetry)


def _configure(button_id="rr_raider", can_manage=True):
    return ConfigureRequest(
        guild_id="G1",
        user_id="ADMIN",
        invoker_can_manage_roles=can_manage,
        button_id=button_id,
        role=RAIDER,
    )


@pytest.mark.asyncio
async def test_configure_then_button_press_example(dispatcher, guild, telemetry):
    setup_ctx = FakeContext(guild)
    await dispatcher.dispatch(_configure(), setup_ctx)
    assert setup_ctx.replies[0].content == "Mapped **rr_raider** → Raider"
    assert setup_ctx.replies[0].ephemeral is True

    press = ButtonPress(guild_id="G1", user_id="U1", custom_id="rr_raider")
    first = FakeContext(guild)
    await dispatcher.dispatch(press, first)
    second = FakeContext(guild)
    await dispatcher.dispatch(press, second)

    assert [r.content for r in first.replies] == ["Role added."]
    assert [r.content for r in second.replies] == ["Role removed."]
    assert all(r.ephemeral for r in first.replies + second.replies)
    assert guild.members["U1"] == set()
    assert [t[0] for t in telemetry.toggles] == ["added", "removed"]


@pytest.mark.asyncio
async def test_invalid_configure_replies_privately_without_mutation(dispatcher, registry, guild):
    ctx = FakeContext(guild)

    await dispatcher.dispatch(_configure(button_id="nope"), ctx)

    assert len(ctx.replies) == 1
    assert ctx.replies[0].ephemeral is True
    assert "`rr_raider`, `rr_farmer`, `rr_trader`" in ctx.replies[0].content
    assert registry.snapshot() == {}


@pytest.mark.asyncio
async def test_panel_request_replies_publicly_with_buttons(dispatcher, registry):
    ctx = FakeContext()

    await dispatcher.dispatch(PanelRequest(guild_id="G1", user_id="U1"), ctx)

    assert len(ctx.replies) == 1
    reply = ctx.replies[0]
    assert reply.ephemeral is False
    assert [b.label for b in reply.buttons] == ["Raider", "Farmer", "Trader"]
    assert registry.snapshot() == {}


@pytest.mark.asyncio
async def test_untranslated_interaction_is_ignored(dispatcher):
    ctx = FakeContext()

    assert await dispatcher.dispatch(None, ctx) is True

    assert ctx.replies == []


@pytest.mark.asyncio
async def test_fault_is_answered_with_generic_message(dispatcher, guild, telemetry, caplog):
    assert await dispatcher.dispatch(_configure(), FakeContext(guild)) is True

    async def broken_fetch(user_id):
        raise ConnectionError("gateway hiccup")

    guild.fetch_member = broken_fetch
    ctx = FakeContext(guild)

    with caplog.at_level(logging.ERROR):
        handled = await dispatcher.dispatch(ButtonPress("G1", "U1", "rr_raider"), ctx)

    assert handled is False
    assert [r.content for r in ctx.replies] == [GENERIC_FAILURE]
    assert ctx.replies[0].ephemeral is True
    assert telemetry.errors == [("ConnectionError", "button_press")]
    assert "Interaction error" in caplog.text
    assert guild.changes == []


@pytest.mark.asyncio
async def test_fault_after_response_is_not_answered_twice(dispatcher, guild):
    class ReplyThenFail(FakeContext):
        async def reply(self, reply):
            await super().reply(reply)
            raise RuntimeError("post-send failure")

    ctx = ReplyThenFail(guild)

    await dispatcher.dispatch(PanelRequest("G1", "U1"), ctx)

    assert len(ctx.replies) == 1
    assert ctx.replies[0].content == "Pick your roles:"


@pytest.mark.asyncio
async def test_failure_notice_errors_are_swallowed(dispatcher, guild, caplog):
    ctx = FakeContext(guild, fail_reply=True)

    with caplog.at_level(logging.ERROR):
        await dispatcher.dispatch(PanelRequest("G1", "U1"), ctx)

    assert ctx.replies == []
    assert "Failed to send failure notice" in caplog.text


@pytest.mark.asyncio
async def test_button_press_without_guild_access_is_contained(dispatcher):
    ctx = FakeContext(None)

    await dispatcher.dispatch(ButtonPress("G1", "U1", "rr_raider"), ctx)

    assert [r.content for r in ctx.replies] == [GENERIC_FAILURE]
