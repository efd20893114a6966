"""discord.py implementations of the voice gateway, transport and audio device ports."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import discord

from guild_audio.application.interfaces.voice_transport import (
    AudioDevice,
    DeviceStateListener,
    TransportStateListener,
    VoiceGateway,
    VoiceTransport,
)
from guild_audio.config.settings import ConnectionSettings, DiscordSettings
from guild_audio.domain.music.value_objects import (
    ConnectionState,
    ConnectionStatus,
    DeviceState,
    DisconnectReason,
    JoinParams,
)
from guild_audio.domain.shared.constants import VoiceConstants
from guild_audio.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from discord.ext.commands import Bot

logger = logging.getLogger(__name__)

VoiceChannelType = discord.VoiceChannel | discord.StageChannel


class DiscordAudioDevice(AudioDevice):
    """Plays sources on the voice client of the transport it is subscribed to.

    discord.py reports the end of a source from its player thread; the
    ``after`` callback hops back onto the event loop before touching state.
    A finished source that is no longer current (it was replaced or stopped)
    does not produce an IDLE transition.
    """

    def __init__(self, guild_id: int) -> None:
        self._guild_id = guild_id
        self._state = DeviceState.IDLE
        self._listener: DeviceStateListener | None = None
        self._transport: DiscordVoiceTransport | None = None
        self._source: Any = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def state(self) -> DeviceState:
        return self._state

    def set_state_listener(self, listener: DeviceStateListener | None) -> None:
        self._listener = listener

    def attach(self, transport: DiscordVoiceTransport) -> None:
        self._transport = transport

    def _voice_client(self) -> discord.VoiceClient | None:
        if self._transport is None:
            return None
        return self._transport.voice_client

    async def play(self, resource: Any) -> None:
        vc = self._voice_client()
        if vc is None or not vc.is_connected():
            raise discord.ClientException("Not connected to voice.")

        self._loop = asyncio.get_running_loop()
        self._source = resource
        if vc.is_playing() or vc.is_paused():
            vc.stop()

        vc.play(resource, after=self._make_after_callback(resource))
        await self._set_state(DeviceState.PLAYING)

    async def pause(self) -> bool:
        vc = self._voice_client()
        if vc is None or not vc.is_playing():
            return False
        vc.pause()
        await self._set_state(DeviceState.PAUSED)
        return True

    async def unpause(self) -> bool:
        vc = self._voice_client()
        if vc is None or not vc.is_paused():
            return False
        vc.resume()
        await self._set_state(DeviceState.PLAYING)
        return True

    async def stop(self) -> None:
        self._source = None
        vc = self._voice_client()
        if vc is not None and (vc.is_playing() or vc.is_paused()):
            vc.stop()
        await self._set_state(DeviceState.IDLE)

    def _make_after_callback(self, resource: Any):
        loop = self._loop

        def after_callback(error: Exception | None = None) -> None:
            if error:
                logger.warning(LogTemplates.VOICE_PLAYER_ERROR, self._guild_id, error)
            if loop is None or loop.is_closed():
                return
            asyncio.run_coroutine_threadsafe(self._on_source_finished(resource), loop)

        return after_callback

    async def _on_source_finished(self, resource: Any) -> None:
        if resource is not self._source:
            return
        self._source = None
        await self._set_state(DeviceState.IDLE)

    async def _set_state(self, new: DeviceState) -> None:
        old = self._state
        if old == new:
            return
        self._state = new
        if self._listener is not None:
            await self._listener(old, new)


class DiscordVoiceTransport(VoiceTransport):
    """One guild's voice connection, driven by ``VoiceChannel.connect``.

    Connection attempts run as background tasks and report progress through
    state transitions; nothing here raises to the caller.
    """

    def __init__(
        self,
        bot: Bot,
        params: JoinParams,
        *,
        self_deafen: bool = True,
        connect_timeout: float = VoiceConstants.CONNECT_TIMEOUT_SECONDS,
    ) -> None:
        self._bot = bot
        self._guild_id = params.guild_id
        self._channel_id = params.channel_id
        self._self_deafen = self_deafen
        self._connect_timeout = connect_timeout
        self._state = ConnectionState(ConnectionStatus.SIGNALLING)
        self._listener: TransportStateListener | None = None
        self._voice_client: discord.VoiceClient | None = None
        self._connect_task: asyncio.Task[None] | None = None
        self._rejoin_attempts = 0

    @property
    def guild_id(self) -> int:
        return self._guild_id

    @property
    def channel_id(self) -> int:
        return self._channel_id

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def rejoin_attempts(self) -> int:
        return self._rejoin_attempts

    @property
    def voice_client(self) -> discord.VoiceClient | None:
        return self._voice_client

    def set_state_listener(self, listener: TransportStateListener | None) -> None:
        self._listener = listener

    def subscribe(self, device: AudioDevice) -> None:
        if isinstance(device, DiscordAudioDevice):
            device.attach(self)

    def start(self) -> None:
        """Begin connecting in the background."""
        self._connect_task = asyncio.create_task(self._connect())

    async def rejoin(self) -> bool:
        if self._state.status == ConnectionStatus.DESTROYED:
            return False
        self._rejoin_attempts += 1
        self._set_state(ConnectionState(ConnectionStatus.SIGNALLING))
        self.start()
        return True

    async def destroy(self) -> None:
        if self._state.status == ConnectionStatus.DESTROYED:
            return

        task = self._connect_task
        self._connect_task = None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

        vc = self._voice_client or self._guild_voice_client()
        self._voice_client = None
        if vc is not None:
            try:
                await vc.disconnect(force=True)
                logger.info(LogTemplates.VOICE_DISCONNECTED, self._guild_id)
            except (discord.ClientException, discord.HTTPException, OSError) as e:
                logger.warning(LogTemplates.VOICE_DISCONNECT_FAILED, self._guild_id, e)

        self._set_state(ConnectionState(ConnectionStatus.DESTROYED))

    def handle_voice_state_update(self, channel_id: int | None) -> None:
        """React to the bot's own voice state changing outside of our control.

        Leaving the channel is reported as a 4014 close so the recovery
        window applies. A move is a 4014 close followed by a reconnect.
        """
        if self._state.status != ConnectionStatus.READY:
            return
        if channel_id == self._channel_id:
            return

        closed = ConnectionState(
            ConnectionStatus.DISCONNECTED,
            DisconnectReason.WEBSOCKET_CLOSE,
            VoiceConstants.RECOVERABLE_CLOSE_CODE,
        )
        if channel_id is None:
            logger.info(LogTemplates.VOICE_KICKED, self._guild_id)
            self._set_state(closed)
            return

        logger.info(LogTemplates.VOICE_MOVED, channel_id, self._guild_id)
        self._channel_id = channel_id
        self._set_state(closed)
        self._set_state(ConnectionState(ConnectionStatus.CONNECTING))
        self._set_state(ConnectionState(ConnectionStatus.READY))

    def _guild_voice_client(self) -> discord.VoiceClient | None:
        guild = self._bot.get_guild(self._guild_id)
        if guild is None:
            return None
        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    async def _connect(self) -> None:
        guild = self._bot.get_guild(self._guild_id)
        if guild is None:
            logger.warning(ErrorMessages.GUILD_NOT_FOUND.format(guild_id=self._guild_id))
            self._disconnected(DisconnectReason.ADAPTER_UNAVAILABLE)
            return

        channel = guild.get_channel(self._channel_id)
        if not isinstance(channel, VoiceChannelType):
            logger.warning(
                ErrorMessages.CHANNEL_NOT_FOUND.format(
                    channel_id=self._channel_id, guild_id=self._guild_id
                )
            )
            self._disconnected(DisconnectReason.ENDPOINT_REMOVED)
            return

        existing = self._guild_voice_client()
        if existing is not None and not existing.is_connected():
            logger.warning(LogTemplates.VOICE_STALE_CLEANUP, self._guild_id)
            try:
                await existing.disconnect(force=True)
            except (discord.ClientException, discord.HTTPException, OSError) as e:
                logger.warning(LogTemplates.VOICE_DISCONNECT_FAILED, self._guild_id, e)
            existing = None

        self._set_state(ConnectionState(ConnectionStatus.CONNECTING))
        try:
            async with asyncio.timeout(self._connect_timeout):
                if existing is not None:
                    if existing.channel is None or existing.channel.id != channel.id:
                        await existing.move_to(channel)
                    vc = existing
                else:
                    vc = await channel.connect(
                        timeout=self._connect_timeout, self_deaf=self._self_deafen
                    )
        except TimeoutError:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, self._channel_id)
            self._disconnected(DisconnectReason.ADAPTER_UNAVAILABLE)
            return
        except discord.Forbidden:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, self._channel_id)
            self._disconnected(DisconnectReason.ADAPTER_UNAVAILABLE)
            return
        except (discord.ClientException, discord.HTTPException, OSError) as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            self._disconnected(DisconnectReason.ADAPTER_UNAVAILABLE)
            return

        if self._state.status == ConnectionStatus.DESTROYED:
            await vc.disconnect(force=True)
            return

        self._voice_client = vc
        await self._ensure_self_deaf(guild, channel)
        logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
        self._set_state(ConnectionState(ConnectionStatus.READY))

    async def _ensure_self_deaf(self, guild: discord.Guild, channel: VoiceChannelType) -> None:
        if not self._self_deafen:
            return
        try:
            await guild.change_voice_state(channel=channel, self_deaf=True)
        except (discord.ClientException, discord.HTTPException) as exc:
            logger.debug(LogTemplates.VOICE_SELF_DEAFEN_FAILED, guild.id, exc)

    def _disconnected(self, reason: DisconnectReason) -> None:
        self._set_state(ConnectionState(ConnectionStatus.DISCONNECTED, reason))

    def _set_state(self, new: ConnectionState) -> None:
        old = self._state
        if old == new or old.status == ConnectionStatus.DESTROYED:
            return
        self._state = new
        if new.status == ConnectionStatus.READY:
            self._rejoin_attempts = 0
        if self._listener is not None:
            self._listener(old, new)


class DiscordVoiceGateway(VoiceGateway):
    """Creates transports and devices and routes the bot's voice state updates to them."""

    def __init__(
        self,
        bot: Bot | None = None,
        *,
        discord_settings: DiscordSettings | None = None,
        connection_settings: ConnectionSettings | None = None,
    ) -> None:
        self._bot = bot
        self._discord_settings = discord_settings or DiscordSettings()
        self._connection_settings = connection_settings or ConnectionSettings()
        self._transports: dict[int, DiscordVoiceTransport] = {}

    def set_bot(self, bot: Bot) -> None:
        self._bot = bot

    def _require_bot(self) -> Bot:
        if self._bot is None:
            raise RuntimeError("Bot not set on voice gateway")
        return self._bot

    def join(self, params: JoinParams) -> DiscordVoiceTransport:
        transport = DiscordVoiceTransport(
            self._require_bot(),
            params,
            self_deafen=self._discord_settings.self_deafen,
            connect_timeout=self._connection_settings.connect_timeout_seconds,
        )
        self._transports[params.guild_id] = transport
        transport.start()
        return transport

    def create_device(self, guild_id: int) -> DiscordAudioDevice:
        return DiscordAudioDevice(guild_id)

    def transport_for(self, guild_id: int) -> DiscordVoiceTransport | None:
        transport = self._transports.get(guild_id)
        if transport is not None and transport.state.status == ConnectionStatus.DESTROYED:
            del self._transports[guild_id]
            return None
        return transport

    def handle_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        bot = self._require_bot()
        if bot.user is None or member.id != bot.user.id:
            return
        transport = self.transport_for(member.guild.id)
        if transport is None:
            return
        channel_id = after.channel.id if after.channel is not None else None
        transport.handle_voice_state_update(channel_id)
