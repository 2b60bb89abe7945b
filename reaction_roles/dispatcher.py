"""Routes translated interactions to the role panel handlers."""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, Optional, Protocol, Union

from .models import (
    ButtonPress,
    ConfigureRequest,
    InteractionKind,
    PanelRequest,
    Reply,
)
from .service import GuildPort, RolePanelService
from .telemetry import TelemetryCollector, get_telemetry

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Something went wrong. Check bot logs."

InteractionRequest = Union[ConfigureRequest, PanelRequest, ButtonPress]


class InteractionContext(Protocol):
    """The reply channel of one interaction."""

    @property
    def responded(self) -> bool: ...

    @property
    def guild(self) -> Optional[GuildPort]: ...

    async def reply(self, reply: Reply) -> None: ...


class InteractionDispatcher:
    """Dispatches each interaction kind to its handler inside a failure boundary."""

    def __init__(
        self,
        service: RolePanelService,
        telemetry: Optional[TelemetryCollector] = None,
    ) -> None:
        self.service = service
        self._telemetry = telemetry
        self._handlers: Dict[
            InteractionKind, Callable[[InteractionRequest, InteractionContext], Awaitable[None]]
        ] = {
            InteractionKind.CONFIGURE: self._handle_configure,
            InteractionKind.POST_PANEL: self._handle_panel,
            InteractionKind.BUTTON_PRESS: self._handle_button,
        }

    @property
    def telemetry(self) -> TelemetryCollector:
        if self._telemetry is None:
            self._telemetry = get_telemetry()
        return self._telemetry

    async def dispatch(
        self, request: Optional[InteractionRequest], context: InteractionContext
    ) -> bool:
        """Handle one interaction; never raises.

        Returns False when the handler failed and the failure notice path ran.
        Ignored interactions count as handled.
        """

        if request is None:
            return True
        handler = self._handlers.get(request.kind)
        if handler is None:
            return True
        try:
            await handler(request, context)
        except Exception as exc:
            logger.exception("Interaction error (%s)", request.kind.value)
            try:
                self.telemetry.track_error(
                    type(exc).__name__,
                    command=request.kind.value,
                    user_id=request.user_id,
                    error_details=str(exc),
                )
            except Exception:
                logger.exception("Failed to record interaction error")
            await self._reply_failure(context)
            return False
        return True

    async def _reply_failure(self, context: InteractionContext) -> None:
        try:
            if not context.responded:
                await context.reply(Reply(content=GENERIC_FAILURE, ephemeral=True))
        except Exception:
            logger.exception("Failed to send failure notice")

    async def _handle_configure(
        self, request: ConfigureRequest, context: InteractionContext
    ) -> None:
        result = self.service.configure(
            request.guild_id,
            request.button_id,
            request.role,
            invoker_can_manage_roles=request.invoker_can_manage_roles,
        )
        await context.reply(Reply(content=result.message, ephemeral=True))

    async def _handle_panel(self, request: PanelRequest, context: InteractionContext) -> None:
        await context.reply(self.service.panel())

    async def _handle_button(self, request: ButtonPress, context: InteractionContext) -> None:
        guild = context.guild
        if guild is None:
            raise RuntimeError(f"button press in guild {request.guild_id} without guild access")
        result = await self.service.toggle(guild, request.user_id, request.custom_id)
        try:
            self.telemetry.track_toggle(
                result.outcome.value, request.guild_id, request.custom_id
            )
        except Exception:
            logger.exception("Failed to record toggle outcome")
        await context.reply(Reply(content=result.message, ephemeral=True))


__all__ = [
    "GENERIC_FAILURE",
    "InteractionContext",
    "InteractionDispatcher",
    "InteractionRequest",
]
