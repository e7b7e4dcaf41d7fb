from __future__ import annotations
from enum import Enum
from typing import Dict, FrozenSet, Optional

from shared.errors import InvalidNicknameError, InvalidTransitionError
from shared.log import get_logger, log_chat_event
from shared.wire import SEPARATOR

logger = get_logger(__name__)


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DEGRADED = "degraded"      # connected before, latest poll failed


# Allowed status writes; anything else is a contract violation.
TRANSITIONS: Dict[ConnectionStatus, FrozenSet[ConnectionStatus]] = {
    ConnectionStatus.CONNECTING: frozenset({
        ConnectionStatus.CONNECTING,
        ConnectionStatus.CONNECTED,
        ConnectionStatus.DISCONNECTED,
    }),
    ConnectionStatus.CONNECTED: frozenset({
        ConnectionStatus.CONNECTED,
        ConnectionStatus.DEGRADED,
        ConnectionStatus.DISCONNECTED,
    }),
    ConnectionStatus.DEGRADED: frozenset({
        ConnectionStatus.DEGRADED,
        ConnectionStatus.CONNECTED,
        ConnectionStatus.DISCONNECTED,
    }),
    ConnectionStatus.DISCONNECTED: frozenset({
        ConnectionStatus.DISCONNECTED,
        ConnectionStatus.CONNECTING,
    }),
}

_STATUS_LABELS = {
    ConnectionStatus.DISCONNECTED: "Disconnected.",
    ConnectionStatus.CONNECTING: "Connecting...",
    ConnectionStatus.CONNECTED: "Connected. Receiving messages...",
    ConnectionStatus.DEGRADED: "Connection degraded. Showing last known messages...",
}


class Session:
    """
    Process-lifetime record of who we joined as and how the log connection is doing.

    Only the Poller and Submitter write status/last_error, through
    set_status() and set_error(); the nickname is fixed at join time.
    """

    def __init__(self, nickname: str) -> None:
        self._nickname = nickname
        self._status = ConnectionStatus.CONNECTING
        self._last_error: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"Session(nickname={self._nickname!r}, status={self._status.value!r}, "
            f"last_error={self._last_error!r})"
        )

    @property
    def nickname(self) -> str:
        return self._nickname

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def set_status(self, new_status: ConnectionStatus) -> None:
        if new_status not in TRANSITIONS[self._status]:
            raise InvalidTransitionError(
                f"Cannot move session from {self._status.value} to {new_status.value}"
            )
        if new_status is not self._status:
            log_chat_event(
                logger, "info", f"Status {self._status.value} -> {new_status.value}",
                nickname=self._nickname, status=new_status.value,
            )
        self._status = new_status

    def set_error(self, message: Optional[str]) -> None:
        self._last_error = message

    @property
    def status_label(self) -> str:
        return _STATUS_LABELS[self._status]

    @property
    def is_online(self) -> bool:
        return self._status in (ConnectionStatus.CONNECTED, ConnectionStatus.DEGRADED)


def join(nickname: str) -> Session:
    """Validate the nickname and open a session in the Connecting state."""
    if nickname is None or not nickname.strip():
        raise InvalidNicknameError("Nickname is required to join the chat")
    if SEPARATOR in nickname:
        logger.warning("Nickname contains %r; your messages will be attributed to %r",
                       SEPARATOR, nickname.partition(SEPARATOR)[0])
    session = Session(nickname)
    logger.info("Joined chat", extra={"nickname": nickname})
    return session
