"""
Unit Tests for the discord.py voice adapters

Tests for:
- DiscordVoiceTransport connection, failure, kick/move handling and destroy
- DiscordAudioDevice playback state and the player-thread callback
- DiscordVoiceGateway routing of the bot's voice state updates
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
from fakes import settle

from guild_audio.config.settings import ConnectionSettings
from guild_audio.domain.music.value_objects import (
    ConnectionState,
    ConnectionStatus,
    DeviceState,
    DisconnectReason,
    JoinParams,
)
from guild_audio.infrastructure.discord.adapters.voice_adapter import (
    DiscordAudioDevice,
    DiscordVoiceGateway,
    DiscordVoiceTransport,
)

GUILD_ID = 123
CHANNEL_ID = 456


def make_voice_client() -> MagicMock:
    vc = MagicMock(spec=discord.VoiceClient)
    vc.channel = MagicMock()
    vc.disconnect = AsyncMock()
    vc.move_to = AsyncMock()
    vc.is_connected.return_value = True
    vc.is_playing.return_value = False
    vc.is_paused.return_value = False
    return vc


@pytest.fixture
def voice_client():
    return make_voice_client()


@pytest.fixture
def channel(voice_client):
    channel = MagicMock(spec=discord.VoiceChannel)
    channel.id = CHANNEL_ID
    channel.name = "voice"
    channel.connect = AsyncMock(return_value=voice_client)
    return channel


@pytest.fixture
def guild(channel):
    guild = MagicMock()
    guild.id = GUILD_ID
    guild.name = "guild"
    guild.voice_client = None
    guild.get_channel.return_value = channel
    guild.change_voice_state = AsyncMock()
    return guild


@pytest.fixture
def bot(guild):
    bot = MagicMock()
    bot.get_guild.return_value = guild
    bot.user.id = 999
    return bot


class StateLog:
    def __init__(self) -> None:
        self.states: list[ConnectionState] = []

    def __call__(self, old: ConnectionState, new: ConnectionState) -> None:
        self.states.append(new)

    @property
    def statuses(self) -> list[ConnectionStatus]:
        return [s.status for s in self.states]


@pytest.fixture
def transport(bot):
    return DiscordVoiceTransport(bot, JoinParams(GUILD_ID, CHANNEL_ID), connect_timeout=5.0)


@pytest.fixture
def state_log(transport):
    log = StateLog()
    transport.set_state_listener(log)
    return log


async def connect(transport: DiscordVoiceTransport) -> None:
    transport.start()
    await transport._connect_task


# =============================================================================
# Transport Tests
# =============================================================================


class TestTransportConnect:
    """Tests for the background connection attempt."""

    async def test_connects_self_deafened(self, transport, state_log, channel, guild, voice_client):
        """Should connect, self-deafen and report CONNECTING then READY."""
        await connect(transport)

        assert state_log.statuses == [ConnectionStatus.CONNECTING, ConnectionStatus.READY]
        channel.connect.assert_awaited_once_with(timeout=5.0, self_deaf=True)
        guild.change_voice_state.assert_awaited_once_with(channel=channel, self_deaf=True)
        assert transport.voice_client is voice_client

    async def test_missing_guild(self, transport, state_log, bot):
        bot.get_guild.return_value = None

        await connect(transport)

        assert transport.state == ConnectionState(
            ConnectionStatus.DISCONNECTED, DisconnectReason.ADAPTER_UNAVAILABLE
        )

    async def test_channel_is_not_voice(self, transport, state_log, guild):
        guild.get_channel.return_value = MagicMock(spec=discord.TextChannel)

        await connect(transport)

        assert transport.state.reason == DisconnectReason.ENDPOINT_REMOVED

    async def test_forbidden(self, transport, state_log, channel):
        """Should report a disconnect instead of raising on missing permissions."""
        channel.connect.side_effect = discord.Forbidden(MagicMock(), "No permission")

        await connect(transport)

        assert state_log.statuses == [ConnectionStatus.CONNECTING, ConnectionStatus.DISCONNECTED]
        assert transport.state.reason == DisconnectReason.ADAPTER_UNAVAILABLE

    async def test_reuses_existing_client_by_moving(self, transport, state_log, guild, channel):
        existing = make_voice_client()
        existing.channel.id = 789
        guild.voice_client = existing

        await connect(transport)

        existing.move_to.assert_awaited_once_with(channel)
        channel.connect.assert_not_awaited()
        assert transport.state.status == ConnectionStatus.READY


class TestTransportVoiceStateUpdates:
    """Tests for kicks and moves observed through voice state updates."""

    async def test_kick_reports_4014(self, transport, state_log):
        await connect(transport)

        transport.handle_voice_state_update(None)

        assert transport.state.status == ConnectionStatus.DISCONNECTED
        assert transport.state.is_recoverable_close

    async def test_move_reports_close_then_ready(self, transport, state_log):
        await connect(transport)
        state_log.states.clear()

        transport.handle_voice_state_update(789)

        assert state_log.statuses == [
            ConnectionStatus.DISCONNECTED,
            ConnectionStatus.CONNECTING,
            ConnectionStatus.READY,
        ]
        assert state_log.states[0].close_code == 4014
        assert transport.channel_id == 789

    async def test_same_channel_is_ignored(self, transport, state_log):
        await connect(transport)
        state_log.states.clear()

        transport.handle_voice_state_update(CHANNEL_ID)

        assert state_log.states == []

    async def test_ignored_before_ready(self, transport, state_log):
        transport.handle_voice_state_update(None)
        assert state_log.states == []


class TestTransportLifecycle:
    """Tests for rejoin and destroy."""

    async def test_destroy_disconnects_once(self, transport, state_log, voice_client):
        await connect(transport)

        await transport.destroy()
        await transport.destroy()

        voice_client.disconnect.assert_awaited_once_with(force=True)
        assert state_log.statuses[-1] == ConnectionStatus.DESTROYED
        assert state_log.statuses.count(ConnectionStatus.DESTROYED) == 1

    async def test_rejoin_after_destroy_refused(self, transport, state_log):
        await transport.destroy()
        assert await transport.rejoin() is False

    async def test_rejoin_counts_until_ready(self, transport, state_log, channel):
        channel.connect.side_effect = discord.ClientException("Already connecting")

        assert await transport.rejoin() is True
        await transport._connect_task
        assert transport.rejoin_attempts == 1

        channel.connect.side_effect = None
        assert await transport.rejoin() is True
        await transport._connect_task

        assert transport.state.status == ConnectionStatus.READY
        assert transport.rejoin_attempts == 0

    async def test_no_transitions_after_destroy(self, transport, state_log):
        await transport.destroy()
        transport._set_state(ConnectionState(ConnectionStatus.READY))
        assert transport.state.status == ConnectionStatus.DESTROYED


# =============================================================================
# Audio Device Tests
# =============================================================================


class DeviceLog:
    def __init__(self) -> None:
        self.transitions: list[tuple[DeviceState, DeviceState]] = []

    async def __call__(self, old: DeviceState, new: DeviceState) -> None:
        self.transitions.append((old, new))


@pytest.fixture
async def device(transport, state_log):
    await connect(transport)
    device = DiscordAudioDevice(GUILD_ID)
    transport.subscribe(device)
    return device


@pytest.fixture
def device_log(device):
    log = DeviceLog()
    device.set_state_listener(log)
    return log


def after_callback(voice_client: MagicMock, call_index: int = -1):
    return voice_client.play.call_args_list[call_index].kwargs["after"]


class TestAudioDevice:
    """Tests for DiscordAudioDevice."""

    async def test_play_requires_connection(self):
        device = DiscordAudioDevice(GUILD_ID)
        with pytest.raises(discord.ClientException):
            await device.play("source")

    async def test_play_sets_playing(self, device, device_log, voice_client):
        await device.play("source")

        voice_client.play.assert_called_once()
        assert voice_client.play.call_args.args == ("source",)
        assert device.state == DeviceState.PLAYING
        assert device_log.transitions == [(DeviceState.IDLE, DeviceState.PLAYING)]

    async def test_finished_source_goes_idle(self, device, device_log, voice_client):
        """The player-thread callback should reach the listener on the loop."""
        await device.play("source")

        after_callback(voice_client)(None)
        await settle()

        assert device.state == DeviceState.IDLE
        assert device_log.transitions[-1] == (DeviceState.PLAYING, DeviceState.IDLE)

    async def test_replaced_source_does_not_go_idle(self, device, device_log, voice_client):
        """A callback for a source that was replaced should be ignored."""
        await device.play("first")
        first_after = after_callback(voice_client, 0)
        voice_client.is_playing.return_value = True
        await device.play("second")

        first_after(None)
        await settle()

        voice_client.stop.assert_called_once()
        assert device.state == DeviceState.PLAYING

    async def test_stopped_source_reports_idle_once(self, device, device_log, voice_client):
        await device.play("source")
        callback = after_callback(voice_client)

        await device.stop()
        callback(None)
        await settle()

        idles = [t for t in device_log.transitions if t[1] == DeviceState.IDLE]
        assert idles == [(DeviceState.PLAYING, DeviceState.IDLE)]

    async def test_pause_and_unpause(self, device, voice_client):
        await device.play("source")

        voice_client.is_playing.return_value = True
        assert await device.pause() is True
        assert device.state == DeviceState.PAUSED

        voice_client.is_playing.return_value = False
        voice_client.is_paused.return_value = True
        assert await device.unpause() is True
        assert device.state == DeviceState.PLAYING
        voice_client.resume.assert_called_once()

    async def test_pause_when_not_playing(self, device):
        assert await device.pause() is False


# =============================================================================
# Gateway Tests
# =============================================================================


class TestVoiceGateway:
    """Tests for DiscordVoiceGateway."""

    async def test_join_requires_bot(self):
        gateway = DiscordVoiceGateway()
        with pytest.raises(RuntimeError):
            gateway.join(JoinParams(GUILD_ID, CHANNEL_ID))

    async def test_routes_bot_voice_state_updates(self, bot):
        gateway = DiscordVoiceGateway(
            bot, connection_settings=ConnectionSettings(connect_timeout_seconds=5.0)
        )
        transport = gateway.join(JoinParams(GUILD_ID, CHANNEL_ID))
        await transport._connect_task
        log = StateLog()
        transport.set_state_listener(log)

        member = MagicMock()
        member.id = 999
        member.guild.id = GUILD_ID
        after = MagicMock()
        after.channel = None
        gateway.handle_voice_state_update(member, MagicMock(), after)

        assert log.states[-1].close_code == 4014

    async def test_ignores_other_members(self, bot):
        gateway = DiscordVoiceGateway(bot)
        transport = gateway.join(JoinParams(GUILD_ID, CHANNEL_ID))
        await transport._connect_task
        log = StateLog()
        transport.set_state_listener(log)

        member = MagicMock()
        member.id = 1
        member.guild.id = GUILD_ID
        gateway.handle_voice_state_update(member, MagicMock(), MagicMock(channel=None))

        assert log.states == []

    async def test_destroyed_transports_are_forgotten(self, bot):
        gateway = DiscordVoiceGateway(bot)
        transport = gateway.join(JoinParams(GUILD_ID, CHANNEL_ID))
        await transport.destroy()

        assert gateway.transport_for(GUILD_ID) is None
