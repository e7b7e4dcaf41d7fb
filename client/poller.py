from __future__ import annotations
import asyncio
from contextlib import suppress
from enum import Enum
from typing import Callable, List, Optional, Set

from client.reconciler import ChatMessage, reconcile
from client.remote_log import RemoteLog
from client.state import ConnectionStatus, Session
from shared.errors import RemoteLogError
from shared.log import get_logger

logger = get_logger(__name__)

UpdateHandler = Callable[[List[ChatMessage], Session], None]


class PollerState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DEGRADED = "degraded"
    STOPPED = "stopped"


class Poller:
    """
    Keeps the local view in step with the remote log.

    Once per tick it fetches the whole log and, on success, replaces the
    published view with a freshly reconciled one. At most one fetch is ever
    outstanding: a tick that finds one in flight is skipped. Failures degrade
    the session status and leave the last good view in place; the schedule
    itself never pauses until stop() is called.

    stop() is observed at the next tick boundary. An outstanding fetch is
    not aborted, but whatever it returns afterwards is thrown away.
    """

    def __init__(
        self,
        remote: RemoteLog,
        session: Session,
        *,
        interval: float = 2.0,
        on_update: Optional[UpdateHandler] = None,
    ) -> None:
        self.remote = remote
        self.session = session
        self.interval = interval
        self.on_update = on_update

        self._view: List[ChatMessage] = []
        self._in_flight: Optional[asyncio.Task] = None
        self._background_tasks: Set[asyncio.Task] = set()
        self._runner: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()
        self._stopped = False
        self._started = False
        self._generation = 0

    @property
    def view(self) -> List[ChatMessage]:
        return list(self._view)

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    @property
    def state(self) -> PollerState:
        if self._stopped:
            return PollerState.STOPPED
        if not self._started:
            return PollerState.IDLE
        return PollerState(self.session.status.value)

    def _track_background_task(self, task: asyncio.Task) -> None:
        """Keep a strong reference to background tasks until completion."""
        self._background_tasks.add(task)

        def _discard(_task: asyncio.Task) -> None:
            self._background_tasks.discard(_task)

        task.add_done_callback(_discard)

    def start(self) -> asyncio.Task:
        """Begin ticking on the running loop. Returns the schedule task."""
        if self._runner is not None and not self._runner.done():
            return self._runner
        if self.session.status is ConnectionStatus.DISCONNECTED:
            self.session.set_status(ConnectionStatus.CONNECTING)
        self._stop_event = asyncio.Event()
        self._stopped = False
        self._started = True
        self._runner = asyncio.create_task(self._run())
        logger.info("Polling %s every %.2fs", type(self.remote).__name__, self.interval,
                    extra={"nickname": self.session.nickname})
        return self._runner

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            self.tick()
            with suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)

    def tick(self) -> Optional[asyncio.Task]:
        """
        Dispatch one fetch unless one is already outstanding.

        Also usable before start() for a one-off poll; state stays IDLE
        until the schedule is running, while the session status still
        follows the outcome.
        """
        if self._stopped:
            return None
        if self.in_flight:
            logger.debug("Previous poll still outstanding; skipping tick")
            return None
        task = asyncio.create_task(self._poll_once(self._generation))
        self._in_flight = task
        self._track_background_task(task)
        return task

    def _is_stale(self, generation: int) -> bool:
        return self._stopped or generation != self._generation

    async def _poll_once(self, generation: int) -> None:
        try:
            raw = await self.remote.fetch_messages()
        except RemoteLogError as exc:
            if self._is_stale(generation):
                logger.debug("Discarding poll failure after stop: %s", exc)
                return
            self._record_failure(str(exc))
            return
        except Exception as exc:
            if self._is_stale(generation):
                logger.debug("Discarding poll error after stop: %r", exc)
                return
            logger.exception("Unexpected error fetching messages")
            self._record_failure(f"Unexpected error fetching messages: {exc!r}")
            return
        if self._is_stale(generation):
            logger.debug("Discarding poll result after stop")
            return
        self._record_success(raw)

    def _record_success(self, raw: List[str]) -> None:
        self._view = reconcile(raw)
        self.session.set_error(None)
        self.session.set_status(ConnectionStatus.CONNECTED)
        self._notify()

    def _record_failure(self, message: str) -> None:
        self.session.set_error(message)
        if self.session.status in (ConnectionStatus.CONNECTED, ConnectionStatus.DEGRADED):
            self.session.set_status(ConnectionStatus.DEGRADED)
        logger.warning("Poll failed: %s", message,
                       extra={"nickname": self.session.nickname, "status": self.session.status.value})
        self._notify()

    def _notify(self) -> None:
        if self.on_update is None:
            return
        try:
            self.on_update(self.view, self.session)
        except Exception:
            logger.exception("Update handler raised; polling continues")

    async def stop(self) -> None:
        """Stop future ticks and mark the session disconnected."""
        if self._stopped:
            return
        self._stopped = True
        self._generation += 1
        self._stop_event.set()
        if self._runner is not None:
            await self._runner
            self._runner = None
        if self._started:
            self.session.set_status(ConnectionStatus.DISCONNECTED)
        logger.info("Poller stopped", extra={"nickname": self.session.nickname})

    async def drain(self) -> None:
        """Wait for any fetch still outstanding after stop(); results are ignored."""
        pending = list(self._background_tasks)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
