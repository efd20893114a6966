"""Session registry - the one place that maps guild ids to live sessions."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from ...domain.music.value_objects import SessionEndReason
from ...domain.shared.constants import LimitConstants, VoiceConstants
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import DiscordSnowflake
from .connection_manager import ConnectionManager
from .playback_engine import PlaybackEngine
from .session import Session

if TYPE_CHECKING:
    from ...domain.music.value_objects import JoinParams
    from ...domain.shared.events import EventBus
    from ..interfaces.voice_transport import VoiceGateway
    from .platform_router import PlatformRouter

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Creates, tracks and evicts sessions; at most one per guild.

    Owned by the container and passed to command handlers. ``shutdown()``
    leaves every remaining session.
    """

    def __init__(
        self,
        *,
        gateway: VoiceGateway,
        router: PlatformRouter,
        event_bus: EventBus,
        ready_timeout: float = VoiceConstants.READY_TIMEOUT_SECONDS,
        recovery_window: float = VoiceConstants.RECOVERY_WINDOW_SECONDS,
        max_rejoin_attempts: int = VoiceConstants.MAX_REJOIN_ATTEMPTS,
        resource_attempts: int = LimitConstants.DEFAULT_RESOURCE_ATTEMPTS,
        rng: random.Random | None = None,
    ) -> None:
        self._gateway = gateway
        self._router = router
        self._event_bus = event_bus
        self._ready_timeout = ready_timeout
        self._recovery_window = recovery_window
        self._max_rejoin_attempts = max_rejoin_attempts
        self._resource_attempts = resource_attempts
        self._rng = rng
        self._sessions: dict[DiscordSnowflake, Session] = {}

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, guild_id: DiscordSnowflake) -> Session | None:
        return self._sessions.get(guild_id)

    def get_or_create(self, guild_id: DiscordSnowflake, join_params: JoinParams) -> Session:
        """Return the guild's session, joining ``join_params`` if there is none.

        Must be called from a running event loop.
        """
        existing = self._sessions.get(guild_id)
        if existing is not None:
            logger.debug(LogTemplates.SESSION_REUSED, guild_id)
            return existing

        transport = self._gateway.join(join_params)
        device = self._gateway.create_device(guild_id)
        transport.subscribe(device)

        engine = PlaybackEngine(
            guild_id=guild_id,
            device=device,
            router=self._router,
            event_bus=self._event_bus,
            resource_attempts=self._resource_attempts,
            rng=self._rng,
        )

        session: Session | None = None

        def on_teardown() -> None:
            if session is not None:
                self.remove(guild_id, session)

        connection = ConnectionManager(
            guild_id=guild_id,
            transport=transport,
            engine=engine,
            event_bus=self._event_bus,
            on_teardown=on_teardown,
            ready_timeout=self._ready_timeout,
            recovery_window=self._recovery_window,
            max_rejoin_attempts=self._max_rejoin_attempts,
        )
        transport.set_state_listener(connection.handle_state_change)

        session = Session(
            guild_id=guild_id,
            channel_id=join_params.channel_id,
            connection=connection,
            engine=engine,
            router=self._router,
        )
        self._sessions[guild_id] = session
        logger.info(LogTemplates.SESSION_CREATED, guild_id, join_params.channel_id)

        connection.start()
        return session

    def remove(self, guild_id: DiscordSnowflake, session: Session | None = None) -> bool:
        """Evict a guild's session. Idempotent.

        If ``session`` is given, only that exact session is evicted, so a late
        teardown cannot evict a newer session for the same guild.
        """
        current = self._sessions.get(guild_id)
        if current is None or (session is not None and current is not session):
            return False
        del self._sessions[guild_id]
        logger.info(LogTemplates.SESSION_REMOVED, guild_id)
        return True

    async def shutdown(self) -> None:
        """Leave every session."""
        sessions = list(self._sessions.values())
        logger.info(LogTemplates.REGISTRY_SHUTDOWN, len(sessions))
        for session in sessions:
            try:
                await session.leave(SessionEndReason.SHUTDOWN)
            except Exception as e:
                logger.warning(LogTemplates.REGISTRY_SHUTDOWN_FAILED, session.guild_id, e)
        self._sessions.clear()
