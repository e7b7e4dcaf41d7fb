from __future__ import annotations
from typing import Optional

from client.remote_log import RemoteLog
from client.state import Session
from shared.errors import RemoteLogError, SendError
from shared.log import get_logger
from shared.wire import encode

logger = get_logger(__name__)


class Submitter:
    """
    Single-attempt delivery of outbound chat lines.

    A successful send does not touch the local view; the message shows up
    once a later poll sees it on the log. A failed send records last_error
    but leaves the connection status alone.
    """

    def __init__(self, remote: RemoteLog, session: Optional[Session] = None) -> None:
        self.remote = remote
        self.session = session

    def attach(self, session: Session) -> None:
        self.session = session

    async def send(self, content: str) -> None:
        session = self.session
        if session is None:
            raise SendError("Join the chat before sending messages", local=True)
        if not content or not content.strip():
            raise SendError("Cannot send an empty message", local=True)

        wire_message = encode(session.nickname, content)
        try:
            await self.remote.send_message(wire_message)
        except RemoteLogError as exc:
            detail = f"Cannot send message: {exc}"
            session.set_error(detail)
            logger.warning(detail, extra={"nickname": session.nickname})
            raise SendError(detail) from exc
        logger.debug("Message accepted by log", extra={"nickname": session.nickname})
