from __future__ import annotations
import asyncio
import json
from abc import ABC, abstractmethod
from typing import List, Optional

import aiohttp

from shared.errors import MalformedResponseError, ServerError, TransportFailureError
from shared.log import get_logger

logger = get_logger(__name__)

MESSAGES_PATH = "/api/messages"
SEND_PATH = "/api/sendMessage"


class RemoteLog(ABC):
    """The shared append-only log as seen by the poller and submitter."""

    @abstractmethod
    async def fetch_messages(self) -> List[str]:
        """Return the complete log in display order, or raise a RemoteLogError."""
        ...

    @abstractmethod
    async def send_message(self, wire_message: str) -> None:
        """Append one wire string to the log, or raise a RemoteLogError."""
        ...

    async def close(self) -> None:
        pass


class RemoteLogClient(RemoteLog):
    """
    HTTP client for the log server.

    GET  /api/messages     -> 200 + JSON array of strings
    POST /api/sendMessage  <- JSON string body, any 2xx accepted

    Every request carries a total timeout; a timeout is reported as a
    transport failure.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 1.5,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "RemoteLogClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def fetch_messages(self) -> List[str]:
        url = f"{self.base_url}{MESSAGES_PATH}"
        try:
            async with self._get_session().get(url, timeout=self.timeout) as resp:
                if resp.status != 200:
                    raise ServerError(resp.status, await _safe_text(resp))
                body = await resp.read()
        except asyncio.TimeoutError as exc:
            raise TransportFailureError(f"Timed out fetching messages from {self.base_url}") from exc
        except aiohttp.ClientError as exc:
            raise TransportFailureError(f"Cannot reach message log at {self.base_url}: {exc}") from exc

        try:
            data = json.loads(body)
        except (ValueError, RecursionError) as exc:
            raise MalformedResponseError(f"Message log returned invalid JSON: {exc}") from exc
        if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
            raise MalformedResponseError("Message log must return a JSON array of strings")
        logger.debug("Fetched %d messages", len(data))
        return data

    async def send_message(self, wire_message: str) -> None:
        url = f"{self.base_url}{SEND_PATH}"
        try:
            async with self._get_session().post(
                url,
                data=json.dumps(wire_message),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            ) as resp:
                if not 200 <= resp.status < 300:
                    raise ServerError(resp.status, await _safe_text(resp))
        except asyncio.TimeoutError as exc:
            raise TransportFailureError(f"Timed out sending message to {self.base_url}") from exc
        except aiohttp.ClientError as exc:
            raise TransportFailureError(f"Cannot reach message log at {self.base_url}: {exc}") from exc
        logger.debug("Delivered %d-char message", len(wire_message))

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None


async def _safe_text(resp: aiohttp.ClientResponse) -> str:
    try:
        return (await resp.text())[:200]
    except (aiohttp.ClientError, UnicodeDecodeError):
        return ""
