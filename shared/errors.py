from __future__ import annotations
from typing import Optional


class InvalidNicknameError(ValueError):
    """Raised when a nickname is empty or whitespace only."""
    pass


class InvalidTransitionError(RuntimeError):
    """Raised when a session status write is not in the transition table."""
    pass


class ConfigError(ValueError):
    """Raised when client configuration values are unusable."""
    pass


class RemoteLogError(Exception):
    """Base for every failure talking to the remote message log."""
    pass


class TransportFailureError(RemoteLogError):
    """Connection could not be established, was dropped, or timed out."""
    pass


class ServerError(RemoteLogError):
    """The remote log answered with a non-success status code."""

    def __init__(self, status: int, detail: str = "") -> None:
        self.status = status
        self.detail = detail
        message = f"Message log returned status {status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MalformedResponseError(RemoteLogError):
    """The remote log answered 200 but the payload had the wrong shape."""
    pass


class SendError(Exception):
    """
    Outbound delivery failed or was rejected locally.

    For delivery failures the underlying RemoteLogError is chained as __cause__.
    """

    def __init__(self, message: str, *, local: bool = False) -> None:
        super().__init__(message)
        self.local = local

    @property
    def reason(self) -> Optional[BaseException]:
        return self.__cause__
