"""Connection manager - keeps one guild's voice transport alive or tears the session down."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Collection, Coroutine
from typing import TYPE_CHECKING, Any

from ...domain.music.value_objects import ConnectionState, ConnectionStatus, SessionEndReason
from ...domain.shared.constants import VoiceConstants
from ...domain.shared.events import SessionDestroyed
from ...domain.shared.exceptions import ConnectionLostError, ConnectionTimeoutError
from ...domain.shared.messages import LogTemplates
from ...domain.shared.types import DiscordSnowflake

if TYPE_CHECKING:
    from ...domain.shared.events import EventBus
    from ..interfaces.voice_transport import VoiceTransport
    from .playback_engine import PlaybackEngine

logger = logging.getLogger(__name__)


class ConnectionManager:
    """State machine driven by the transport's state changes.

    Transitions handled:
    - -> DISCONNECTED with close code 4014 (moved or kicked): wait for the
      transport to start reconnecting, leave if it does not within the
      recovery window.
    - -> DISCONNECTED otherwise: rejoin while under the attempt cap, then leave.
    - -> DESTROYED: leave.
    - -> SIGNALLING / CONNECTING: READY must follow within the ready timeout,
      or the transport is destroyed.

    Reactions run as tasks owned by the manager; ``leave()`` cancels them.
    """

    def __init__(
        self,
        *,
        guild_id: DiscordSnowflake,
        transport: VoiceTransport,
        engine: PlaybackEngine,
        event_bus: EventBus,
        on_teardown: Callable[[], Any],
        ready_timeout: float = VoiceConstants.READY_TIMEOUT_SECONDS,
        recovery_window: float = VoiceConstants.RECOVERY_WINDOW_SECONDS,
        max_rejoin_attempts: int = VoiceConstants.MAX_REJOIN_ATTEMPTS,
    ) -> None:
        self._guild_id = guild_id
        self._transport = transport
        self._engine = engine
        self._event_bus = event_bus
        self._on_teardown = on_teardown
        self._ready_timeout = ready_timeout
        self._recovery_window = recovery_window
        self._max_rejoin_attempts = max_rejoin_attempts

        self._waiters: list[tuple[frozenset[ConnectionStatus], asyncio.Future[ConnectionState]]] = []
        self._tasks: set[asyncio.Task[Any]] = set()
        self._ready_deadline_pending = False
        self._ready_deadline_expired = False
        self._left = False
        self._end_reason: SessionEndReason | None = None

    @property
    def state(self) -> ConnectionState:
        return self._transport.state

    @property
    def is_ready(self) -> bool:
        return self._transport.state.status == ConnectionStatus.READY

    @property
    def has_left(self) -> bool:
        return self._left

    @property
    def end_reason(self) -> SessionEndReason | None:
        return self._end_reason

    def start(self) -> None:
        """Arm the ready deadline for a transport that is still connecting."""
        if self._transport.state.status.is_pending:
            self._start_ready_deadline()

    # === Waiting ===

    async def wait_for(
        self,
        status: ConnectionStatus | Collection[ConnectionStatus],
        timeout: float,
    ) -> ConnectionState:
        """Suspend until the transport enters one of the given states.

        Raises:
            TimeoutError: The state was not entered within ``timeout`` seconds.
            ConnectionLostError: The session was torn down while waiting.
        """
        wanted = frozenset([status] if isinstance(status, ConnectionStatus) else status)
        current = self._transport.state
        if current.status in wanted:
            return current
        if self._left:
            raise ConnectionLostError(self._guild_id)

        future: asyncio.Future[ConnectionState] = asyncio.get_running_loop().create_future()
        waiter = (wanted, future)
        self._waiters.append(waiter)
        try:
            async with asyncio.timeout(timeout):
                return await future
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)

    async def ensure_ready(self, timeout: float | None = None) -> None:
        """Wait for READY; on timeout destroy the connection and tear the session down.

        Raises:
            ConnectionTimeoutError: READY was not reached in time.
            ConnectionLostError: The session was torn down for another reason.
        """
        deadline = self._ready_timeout if timeout is None else timeout
        try:
            await self.wait_for(ConnectionStatus.READY, deadline)
        except TimeoutError:
            logger.warning(LogTemplates.CONNECTION_TIMEOUT, self._guild_id, deadline)
            await self.leave(SessionEndReason.CONNECTION_TIMEOUT)
            raise ConnectionTimeoutError(self._guild_id, deadline) from None
        except ConnectionLostError:
            if self._ready_deadline_expired:
                raise ConnectionTimeoutError(self._guild_id, self._ready_timeout) from None
            raise

    def _resolve_waiters(self, state: ConnectionState) -> None:
        for wanted, future in list(self._waiters):
            if state.status in wanted and not future.done():
                future.set_result(state)

    def _fail_waiters(self) -> None:
        for _, future in self._waiters:
            if not future.done():
                future.set_exception(ConnectionLostError(self._guild_id))
        self._waiters.clear()

    # === State machine ===

    def handle_state_change(self, old: ConnectionState, new: ConnectionState) -> None:
        """Transport state listener. Must be called on the event loop thread."""
        logger.debug(LogTemplates.CONNECTION_STATE_CHANGED, self._guild_id, old, new)
        self._resolve_waiters(new)
        if self._left:
            return

        if new.status == ConnectionStatus.DISCONNECTED:
            if new.is_recoverable_close:
                self._spawn(self._await_recovery(new))
            elif self._transport.rejoin_attempts < self._max_rejoin_attempts:
                self._spawn(self._rejoin())
            else:
                logger.warning(
                    LogTemplates.CONNECTION_REJOIN_EXHAUSTED,
                    self._guild_id,
                    self._max_rejoin_attempts,
                )
                self._spawn(self.leave(SessionEndReason.CONNECTION_LOST))
        elif new.status == ConnectionStatus.DESTROYED:
            self._spawn(self.leave(SessionEndReason.TRANSPORT_DESTROYED))
        elif new.status.is_pending:
            self._start_ready_deadline()

    async def _await_recovery(self, state: ConnectionState) -> None:
        logger.info(
            LogTemplates.CONNECTION_RECOVERY_WAIT,
            self._guild_id,
            state.close_code,
            self._recovery_window,
        )
        try:
            await self.wait_for(
                {ConnectionStatus.SIGNALLING, ConnectionStatus.CONNECTING, ConnectionStatus.READY},
                self._recovery_window,
            )
        except TimeoutError:
            logger.warning(
                LogTemplates.CONNECTION_RECOVERY_EXPIRED, self._guild_id, self._recovery_window
            )
            await self.leave(SessionEndReason.RECOVERY_TIMEOUT)

    async def _rejoin(self) -> None:
        logger.info(
            LogTemplates.CONNECTION_REJOIN,
            self._guild_id,
            self._transport.rejoin_attempts + 1,
            self._max_rejoin_attempts,
        )
        try:
            started = await self._transport.rejoin()
        except Exception as e:
            logger.warning(LogTemplates.CONNECTION_REJOIN_FAILED, self._guild_id, e)
            started = False
        if not started:
            await self.leave(SessionEndReason.CONNECTION_LOST)

    def _start_ready_deadline(self) -> None:
        if self._ready_deadline_pending:
            return
        self._ready_deadline_pending = True
        logger.debug(
            LogTemplates.CONNECTION_READY_DEADLINE_STARTED, self._guild_id, self._ready_timeout
        )
        self._spawn(self._ready_deadline())

    async def _ready_deadline(self) -> None:
        try:
            await self.wait_for(ConnectionStatus.READY, self._ready_timeout)
        except TimeoutError:
            logger.warning(
                LogTemplates.CONNECTION_READY_DEADLINE_EXPIRED, self._guild_id, self._ready_timeout
            )
            self._ready_deadline_expired = True
            await self._destroy_transport()
        finally:
            self._ready_deadline_pending = False

    # === Teardown ===

    async def leave(self, reason: SessionEndReason = SessionEndReason.USER_REQUEST) -> bool:
        """Tear the session down once; later calls are no-ops.

        Returns:
            True if this call performed the teardown.
        """
        if self._left:
            return False
        self._left = True
        self._end_reason = reason
        logger.info(LogTemplates.SESSION_DESTROYED, self._guild_id, reason.value)

        # Evict before the first await so new requests get a fresh session.
        self._on_teardown()
        self._cancel_tasks()
        self._fail_waiters()

        if self._transport.state.status != ConnectionStatus.DESTROYED:
            await self._destroy_transport()
        await self._engine.stop()

        await self._event_bus.publish(SessionDestroyed(guild_id=self._guild_id, reason=reason.value))
        return True

    async def _destroy_transport(self) -> None:
        try:
            await self._transport.destroy()
        except Exception as e:
            logger.warning(LogTemplates.CONNECTION_DESTROY_FAILED, self._guild_id, e)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(LogTemplates.CONNECTION_HANDLER_FAILED, self._guild_id, exc_info=exc)

    def _cancel_tasks(self) -> None:
        current = asyncio.current_task()
        for task in list(self._tasks):
            if task is not current and not task.done():
                task.cancel()
