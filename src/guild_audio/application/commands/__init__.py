"""
Application Commands

Command objects and their handlers for write operations.
Commands represent intent to change the system state.
"""

from guild_audio.application.commands.play_query import (
    PlayQueryCommand,
    PlayQueryHandler,
    PlayQueryResult,
    PlayQueryStatus,
)

__all__ = [
    "PlayQueryCommand",
    "PlayQueryHandler",
    "PlayQueryResult",
    "PlayQueryStatus",
]
