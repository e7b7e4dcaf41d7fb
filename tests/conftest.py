import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from client.remote_log import RemoteLog
from shared.errors import RemoteLogError


class FakeRemoteLog(RemoteLog):
    """
    Scriptable stand-in for the log server.

    Each fetch pops the next scripted outcome: a list of wire strings is
    returned, an exception is raised. With gated=True every fetch waits for
    release() before answering.
    """

    def __init__(self, outcomes=None, *, gated: bool = False) -> None:
        self.outcomes = list(outcomes or [])
        self.gated = gated
        self.fetch_calls = 0
        self.active_fetches = 0
        self.max_active_fetches = 0
        self.sent: List[str] = []
        self.send_error: Optional[RemoteLogError] = None
        self.closed = False
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def fetch_messages(self) -> List[str]:
        self.fetch_calls += 1
        self.active_fetches += 1
        self.max_active_fetches = max(self.max_active_fetches, self.active_fetches)
        try:
            if self.gated:
                await self._gate.wait()
            outcome = self.outcomes.pop(0) if self.outcomes else []
            if isinstance(outcome, BaseException):
                raise outcome
            return list(outcome)
        finally:
            self.active_fetches -= 1

    async def send_message(self, wire_message: str) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(wire_message)

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> "FakeRemoteLog":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


async def wait_for(predicate, timeout=3.0):
    loop = asyncio.get_running_loop()
    end = loop.time() + timeout
    while loop.time() < end:
        if predicate():
            return True
        await asyncio.sleep(0.01)
    return False


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    for name in ("LANCHAT_SERVER", "LANCHAT_POLL_INTERVAL", "LANCHAT_TIMEOUT", "LANCHAT_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LANCHAT_LOG_FILE", str(tmp_path / "lanchat.log"))
