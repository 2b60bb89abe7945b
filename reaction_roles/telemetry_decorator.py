"""Discord command telemetry decorator."""
from __future__ import annotations

import functools
import logging
import time
from typing import Any, Callable

import discord

from .telemetry import get_telemetry

logger = logging.getLogger(__name__)


def track_command(func: Callable) -> Callable:
    """Decorator to track slash command usage and performance.

    A callback that returns ``False`` handled its own failure; it is recorded
    as unsuccessful without an error entry.
    """

    @functools.wraps(func)
    async def wrapper(interaction: discord.Interaction, *args, **kwargs) -> Any:
        command_name = func.__name__
        user_id = str(interaction.user.id)
        guild_id = str(interaction.guild_id) if interaction.guild_id else "dm"
        start_time = time.time()
        success = False

        try:
            result = await func(interaction, *args, **kwargs)
            success = result is not False
            return result

        except Exception as e:
            try:
                get_telemetry().track_error(
                    type(e).__name__,
                    command=command_name,
                    user_id=user_id,
                    error_details=str(e)
                )
            except Exception:
                logger.exception("Failed to record command error")
            raise

        finally:
            duration_ms = (time.time() - start_time) * 1000
            try:
                get_telemetry().track_command(
                    command_name,
                    user_id,
                    guild_id,
                    success=success,
                    duration_ms=duration_ms,
                )
            except Exception:
                logger.exception("Failed to record command usage")

    return wrapper
