"""Button-driven self-assignable roles for Discord guilds."""

__version__ = "0.1.0"
