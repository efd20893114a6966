"""Discord client that hosts the container and feeds it voice state updates.

The bot registers no commands of its own. It exists to own the gateway
connection, hand itself to the container so the voice gateway can open
voice clients, and relay ``on_voice_state_update`` into the transports.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from guild_audio.domain.music.value_objects import SessionEndReason
from guild_audio.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...config.container import Container
    from ...config.settings import Settings

logger = logging.getLogger(__name__)


def _voice_intents() -> discord.Intents:
    """Intents needed to join channels and observe the bot's own voice state."""
    intents = discord.Intents.none()
    intents.guilds = True
    intents.voice_states = True
    return intents


class GuildAudioBot(commands.Bot):
    def __init__(self, container: Container, settings: Settings, **kwargs) -> None:
        super().__init__(
            command_prefix=settings.discord.command_prefix,
            intents=_voice_intents(),
            help_command=None,
            **kwargs,
        )
        self.container = container
        self.settings = settings
        self._closing = False
        container.set_bot(self)

    async def setup_hook(self) -> None:
        try:
            await self.container.initialize()
        except Exception as e:
            logger.exception(LogTemplates.BOT_SETUP_FAILED, e)
            raise

    async def on_ready(self) -> None:
        user = self.user
        logger.info(LogTemplates.BOT_READY, user, getattr(user, "id", None), len(self.guilds))

    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        self.container.voice_gateway.handle_voice_state_update(member, before, after)

    async def on_guild_remove(self, guild: discord.Guild) -> None:
        session = self.container.session_registry.get(guild.id)
        if session is None:
            return
        logger.info(LogTemplates.BOT_GUILD_REMOVED, guild.id)
        await session.leave(SessionEndReason.GUILD_REMOVED)

    async def close(self) -> None:
        if self._closing:
            return
        self._closing = True
        logger.info(LogTemplates.BOT_SHUTDOWN_STARTED)

        try:
            await self.container.shutdown()
        except Exception as e:
            logger.warning(LogTemplates.BOT_CONTAINER_SHUTDOWN_ERROR, e)

        await super().close()
        logger.info(LogTemplates.BOT_SHUTDOWN_COMPLETE)

    def _install_signal_handlers(self, shutdown_timeout: float) -> None:
        loop = asyncio.get_running_loop()

        async def graceful_close() -> None:
            try:
                await asyncio.wait_for(self.close(), timeout=shutdown_timeout)
            except TimeoutError:
                logger.warning(LogTemplates.BOT_SHUTDOWN_TIMEOUT, shutdown_timeout)

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda: asyncio.create_task(graceful_close()))

    def run_with_graceful_shutdown(self, token: str, *, shutdown_timeout: float = 30.0) -> None:
        """Run until SIGINT/SIGTERM, giving close() *shutdown_timeout* seconds to finish."""

        async def runner() -> None:
            async with self:
                self._install_signal_handlers(shutdown_timeout)
                await self.start(token)

        asyncio.run(runner())


def create_bot(container: Container, settings: Settings) -> GuildAudioBot:
    return GuildAudioBot(container=container, settings=settings)
