"""
Wire codec for chat log entries.

Every entry on the remote log is one flat string:

    "<sender>: <content>"

decode() splits on the first separator only, so content may itself contain
": ". A sender that contains ": " cannot be recovered on decode; nicknames are
not checked against this.
"""

from __future__ import annotations
from dataclasses import dataclass

SEPARATOR = ": "
UNKNOWN_SENDER = "Unknown"


@dataclass(frozen=True)
class DecodedMessage:
    sender: str
    content: str


def encode(sender: str, content: str) -> str:
    """Pack a (sender, content) pair into its wire string."""
    return f"{sender}{SEPARATOR}{content}"


def decode(raw: str) -> DecodedMessage:
    """
    Unpack a wire string.

    Entries without any separator are attributed to UNKNOWN_SENDER and keep
    the raw text as content.
    """
    sender, sep, content = raw.partition(SEPARATOR)
    if not sep:
        return DecodedMessage(sender=UNKNOWN_SENDER, content=raw)
    return DecodedMessage(sender=sender, content=content)
