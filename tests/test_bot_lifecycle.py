"""
Unit Tests for Bot Lifecycle

Tests for:
- Intents and container wiring at construction
- setup_hook initializing the container
- Voice state updates forwarded to the voice gateway
- Session teardown when the bot leaves a guild
- Idempotent close() with container shutdown
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from discord.ext import commands

from guild_audio.domain.music.value_objects import SessionEndReason
from guild_audio.infrastructure.discord.bot import GuildAudioBot, create_bot


@pytest.fixture
def mock_settings():
    settings = MagicMock()
    settings.discord.command_prefix = "!"
    return settings


@pytest.fixture
def mock_container():
    container = MagicMock()
    container.initialize = AsyncMock()
    container.shutdown = AsyncMock()
    return container


@pytest.fixture
def bot(mock_container, mock_settings):
    return GuildAudioBot(mock_container, mock_settings)


class TestBotInitialization:
    """Tests for bot construction."""

    def test_voice_intents_enabled(self, bot):
        assert bot.intents.voice_states is True
        assert bot.intents.guilds is True

    def test_help_command_disabled(self, bot):
        assert bot.help_command is None

    def test_container_receives_bot(self, bot, mock_container):
        """Should hand itself to the container so the voice gateway can use it."""
        mock_container.set_bot.assert_called_once_with(bot)

    def test_create_bot_factory(self, mock_container, mock_settings):
        bot = create_bot(mock_container, mock_settings)
        assert isinstance(bot, GuildAudioBot)
        assert bot.container is mock_container


class TestSetupHook:
    """Tests for setup_hook."""

    async def test_initializes_container(self, bot, mock_container):
        await bot.setup_hook()
        mock_container.initialize.assert_awaited_once()

    async def test_initialization_failure_propagates(self, bot, mock_container):
        mock_container.initialize.side_effect = RuntimeError("disk full")

        with pytest.raises(RuntimeError, match="disk full"):
            await bot.setup_hook()


class TestVoiceStateForwarding:
    async def test_forwards_to_gateway(self, bot, mock_container):
        member, before, after = MagicMock(), MagicMock(), MagicMock()

        await bot.on_voice_state_update(member, before, after)

        mock_container.voice_gateway.handle_voice_state_update.assert_called_once_with(
            member, before, after
        )


class TestGuildRemoval:
    async def test_leaves_active_session(self, bot, mock_container):
        session = MagicMock()
        session.leave = AsyncMock(return_value=True)
        mock_container.session_registry.get.return_value = session
        guild = MagicMock(id=123)

        await bot.on_guild_remove(guild)

        mock_container.session_registry.get.assert_called_once_with(123)
        session.leave.assert_awaited_once_with(SessionEndReason.GUILD_REMOVED)

    async def test_no_session_is_a_no_op(self, bot, mock_container):
        mock_container.session_registry.get.return_value = None

        await bot.on_guild_remove(MagicMock(id=123))


class TestBotClose:
    """Tests for close()."""

    async def test_close_shuts_down_container_once(self, bot, mock_container):
        with patch.object(commands.Bot, "close", new_callable=AsyncMock) as super_close:
            await bot.close()
            await bot.close()

        mock_container.shutdown.assert_awaited_once()
        super_close.assert_awaited_once()

    async def test_container_shutdown_error_does_not_block_close(self, bot, mock_container):
        mock_container.shutdown.side_effect = RuntimeError("boom")

        with patch.object(commands.Bot, "close", new_callable=AsyncMock) as super_close:
            await bot.close()

        super_close.assert_awaited_once()
