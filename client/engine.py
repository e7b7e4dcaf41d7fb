from __future__ import annotations
from typing import List, Optional

from client.config import ClientConfig
from client.poller import Poller, UpdateHandler
from client.reconciler import ChatMessage, participants
from client.remote_log import RemoteLog, RemoteLogClient
from client.state import Session, join
from client.submitter import Submitter
from shared.log import get_logger

logger = get_logger(__name__)


class ChatEngine:
    """
    What the UI gets to see: the current view, the session, and send().

    Usage:
        async with ChatEngine(config) as engine:
            engine.join("bob")
            engine.on_update(render)
            engine.start()
            await engine.send("hello")
    """

    def __init__(self, config: Optional[ClientConfig] = None, remote: Optional[RemoteLog] = None) -> None:
        self.config = config or ClientConfig()
        self.remote = remote or RemoteLogClient(self.config.server_url, timeout=self.config.request_timeout)
        self.submitter = Submitter(self.remote)
        self._session: Optional[Session] = None
        self._poller: Optional[Poller] = None
        self._handlers: List[UpdateHandler] = []

    async def __aenter__(self) -> "ChatEngine":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def view(self) -> List[ChatMessage]:
        return self._poller.view if self._poller is not None else []

    @property
    def participants(self) -> List[str]:
        return participants(self.view)

    @property
    def poller(self) -> Optional[Poller]:
        return self._poller

    def join(self, nickname: str) -> Session:
        if self._session is not None:
            raise RuntimeError(f"Already joined as {self._session.nickname!r}")
        session = join(nickname)
        self._session = session
        self.submitter.attach(session)
        self._poller = Poller(
            self.remote,
            session,
            interval=self.config.poll_interval,
            on_update=self._dispatch,
        )
        return session

    def on_update(self, handler: UpdateHandler) -> None:
        """Call handler(view, session) after every poll outcome."""
        self._handlers.append(handler)

    def _dispatch(self, view: List[ChatMessage], session: Session) -> None:
        for handler in list(self._handlers):
            try:
                handler(view, session)
            except Exception:
                logger.exception("Update handler %r failed", handler)

    def start(self) -> None:
        if self._poller is None:
            raise RuntimeError("Join the chat before polling")
        self._poller.start()

    async def send(self, content: str) -> None:
        await self.submitter.send(content)

    async def close(self) -> None:
        if self._poller is not None:
            await self._poller.stop()
            await self._poller.drain()
        await self.remote.close()
