"""
Connection - One client's transport endpoint, as seen by the engine.

The gateway creates and owns these. Nothing here points at a room: the room
a connection sits in, its mark and its host flag are all resolved through
the directory by key, so teardown order never matters.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import asyncio
import logging

logger = logging.getLogger(__name__)

# Queued after the last envelope so the writer task knows to stop
CLOSE_SENTINEL = None

# Envelopes a connection may have waiting before it is treated as stalled
OUTBOX_LIMIT = 256


def _bounded_outbox() -> asyncio.Queue:
    # One slot past the limit is kept free for the close sentinel
    return asyncio.Queue(maxsize=OUTBOX_LIMIT + 1)


@dataclass
class Connection:
    """
    A connected client.

    `outbox` holds already-serialized envelopes waiting for the writer task.
    Once `open` is false nothing more is queued for this connection. A
    client that lets OUTBOX_LIMIT envelopes pile up is closed.
    """
    connection_id: str
    open: bool = True
    outbox: asyncio.Queue = field(default_factory=_bounded_outbox, repr=False, compare=False)

    def deliver(self, text: str) -> bool:
        """Queue a serialized envelope. Returns False if the transport is closed."""
        if not self.open:
            return False
        if self.outbox.qsize() >= OUTBOX_LIMIT:
            logger.warning(
                "Outbox of %s exceeded %d envelopes; closing", self.connection_id, OUTBOX_LIMIT,
            )
            self.close()
            return False
        self.outbox.put_nowait(text)
        return True

    def close(self) -> None:
        if self.open:
            self.open = False
            self.outbox.put_nowait(CLOSE_SENTINEL)

    def drain(self) -> list[str]:
        """Take everything currently queued, without waiting."""
        items = []
        while not self.outbox.empty():
            item = self.outbox.get_nowait()
            if item is not CLOSE_SENTINEL:
                items.append(item)
        return items
