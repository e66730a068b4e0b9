"""A direct channel to one other participant."""

import asyncio
import logging
from typing import Optional

from session.transport import Channel

logger = logging.getLogger(__name__)


class PeerLink:
    """Owns one channel and a FIFO of outgoing frames.

    send() never blocks: frames are queued and a writer task pushes them onto
    the channel in submission order. Once a send fails the link is marked
    closed and later frames are dropped; there is no retry.
    """

    def __init__(self, peer_id: str, channel: Channel, reliable: bool = False):
        self.peer_id = peer_id
        self.channel = channel
        self.reliable = reliable
        self.open = False

        self._outgoing: asyncio.Queue = asyncio.Queue()
        self._writer: Optional[asyncio.Task] = None
        self._closing = False

    def start(self) -> None:
        """Mark the link open and start the writer task."""
        if self._writer is not None:
            return
        self.open = True
        self._writer = asyncio.create_task(self._write_loop())

    def send(self, frame: str) -> bool:
        """Queue a frame for delivery. Returns False if the link is not open."""
        if not self.open:
            return False
        self._outgoing.put_nowait(frame)
        return True

    async def recv(self) -> Optional[str]:
        """Receive the next frame, or None once the channel has closed."""
        return await self.channel.recv()

    async def _write_loop(self) -> None:
        while True:
            frame = await self._outgoing.get()
            if frame is None:
                break
            try:
                await self.channel.send(frame)
            except (ConnectionError, OSError) as e:
                logger.warning("Send to %s failed: %s", self.peer_id, e)
                self.open = False
                break

    async def close(self) -> None:
        """Deliver whatever is already queued, then close the channel."""
        if self._closing:
            return
        self._closing = True
        self.open = False

        if self._writer is not None:
            self._outgoing.put_nowait(None)
            try:
                await self._writer
            except asyncio.CancelledError:
                pass
            self._writer = None

        try:
            await self.channel.close()
        except (ConnectionError, OSError) as e:
            logger.warning("Closing link to %s failed: %s", self.peer_id, e)
