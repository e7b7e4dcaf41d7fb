from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List

from shared.wire import decode


@dataclass(frozen=True)
class ChatMessage:
    sender: str
    content: str
    position: int   # index in the polled log; display order


def reconcile(raw_sequence: Iterable[str]) -> List[ChatMessage]:
    """
    Rebuild the whole view from one poll's raw log.

    The remote log is the only source of ordering; nothing is merged with or
    deduplicated against the previous view.
    """
    view = []
    for position, raw in enumerate(raw_sequence):
        decoded = decode(raw)
        view.append(ChatMessage(sender=decoded.sender, content=decoded.content, position=position))
    return view


def participants(view: Iterable[ChatMessage]) -> List[str]:
    """Distinct senders in order of first appearance."""
    seen = {}
    for message in view:
        seen.setdefault(message.sender, None)
    return list(seen)
