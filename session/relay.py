"""Host-relay session layer.

Participants form a star: every joiner holds exactly one link, to the host,
and the host holds a link to every joiner. Broadcast traffic reaches everyone
because the host re-broadcasts whatever it receives to all other links. This
simulates a full mesh at the cost of one extra hop.

Outgoing traffic has two tiers:
- Immediate: chat, word selection, lobby/game control and anything the caller
  forces. Queued onto every open link right away.
- Batched: drawing and cursor updates. Collected in one pending queue that a
  single flush timer drains to every link in arrival order.
"""

import asyncio
import logging
import uuid
from typing import Dict, List, Optional

from session.link import PeerLink
from session.protocol import (
    Envelope, Message, MessageType, ProtocolError,
    Hello, PeerList, PeerJoined, PeerLeft,
    decode_message, encode_message, is_immediate,
)
from session.transport import Channel, Transport, WebSocketTransport
from utils.signals import Signal

logger = logging.getLogger(__name__)

DEFAULT_BATCH_DELAY = 0.016  # ~60 fps


class SessionRelay:
    """Owns the set of peer links for one room.

    Signals:
        message_received(envelope, link_peer_id): every decoded inbound
            message, after the host has relayed it.
        peer_connected(peer_id): a link opened.
        peer_disconnected(peer_id): a link closed.
        peer_count_changed(count): participant count changed.
        session_ended(): a joiner lost its link to the host.
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        peer_id: Optional[str] = None,
        batch_delay: float = DEFAULT_BATCH_DELAY,
    ):
        self.transport = transport or WebSocketTransport()
        self.peer_id = peer_id or uuid.uuid4().hex
        self.batch_delay = batch_delay

        self.room_id: Optional[str] = None
        self.is_host = False
        self.links: Dict[str, PeerLink] = {}

        self._pending: List[str] = []
        self._flush_handle: Optional[asyncio.TimerHandle] = None
        self._reader: Optional[asyncio.Task] = None
        self._participants = 1
        self._closed = False

        self.message_received = Signal("message_received")
        self.peer_connected = Signal("peer_connected")
        self.peer_disconnected = Signal("peer_disconnected")
        self.peer_count_changed = Signal("peer_count_changed")
        self.session_ended = Signal("session_ended")

    # --- Session lifecycle ---

    async def create_session(self) -> str:
        """Allocate a local endpoint and become the host.

        Returns:
            The room id, which is the endpoint address.

        Raises:
            ConnectionError: The endpoint could not be allocated.
        """
        try:
            address = await self.transport.listen(self._accept)
        except Exception as e:
            raise ConnectionError(f"Failed to create room: {e}") from e

        self.room_id = address
        self.peer_id = address
        self.is_host = True
        logger.info("Room created: %s", address)
        return address

    async def join_session(self, room_id: str) -> str:
        """Open a reliable link to the host of room_id.

        Raises:
            ConnectionError: The host could not be reached.
        """
        try:
            channel = await self.transport.connect(room_id)
        except Exception as e:
            raise ConnectionError(f"Failed to join room {room_id}: {e}") from e
        try:
            await channel.send(encode_message(Hello(peer_id=self.peer_id), sender=self.peer_id))
        except Exception as e:
            await channel.close()
            raise ConnectionError(f"Failed to join room {room_id}: {e}") from e

        self.room_id = room_id
        self.is_host = False

        # The host's peer id is its room id.
        link = PeerLink(room_id, channel, reliable=True)
        self.links[room_id] = link
        link.start()
        self._reader = asyncio.create_task(self._read_loop(link))
        logger.info("Joined room %s as %s", room_id, self.peer_id)
        self.peer_connected.emit(room_id)
        return room_id

    async def disconnect(self) -> None:
        """Flush pending traffic, close every link and release the endpoint."""
        if self._closed:
            return
        self._closed = True

        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None
        self.flush()

        links = list(self.links.values())
        self.links.clear()
        for link in links:
            await link.close()

        if self._reader is not None and not self._reader.done():
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
        self._reader = None

        await self.transport.close()
        logger.info("Disconnected from room %s", self.room_id)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def peer_count(self) -> int:
        """Number of participants in the room, this one included."""
        if self.is_host:
            return 1 + len(self.open_links())
        return self._participants

    def open_links(self) -> List[PeerLink]:
        return [link for link in self.links.values() if link.open]

    # --- Sending ---

    def send(self, message: Message, immediate: bool = False) -> None:
        """Send a message to every open link.

        Immediate-tier messages are queued onto the links right away.
        Everything else waits for the next flush.
        """
        if self._closed:
            return

        frame = encode_message(message, sender=self.peer_id)
        if immediate or is_immediate(message):
            self._send_frame(frame)
            return

        self._pending.append(frame)
        if self._flush_handle is None:
            loop = asyncio.get_running_loop()
            self._flush_handle = loop.call_later(self.batch_delay, self._on_flush_timer)

    def broadcast(self, message: Message, exclude: Optional[str] = None, sender: Optional[str] = None) -> None:
        """Send a message immediately to every open link except exclude."""
        frame = encode_message(message, sender=sender or self.peer_id)
        self._send_frame(frame, exclude=exclude)

    def flush(self) -> None:
        """Drain the batched queue to every open link in arrival order."""
        if not self._pending:
            return
        batch = self._pending
        self._pending = []
        for link in self.open_links():
            for frame in batch:
                link.send(frame)

    def _on_flush_timer(self) -> None:
        self._flush_handle = None
        self.flush()

    def _send_frame(self, frame: str, exclude: Optional[str] = None) -> None:
        for link in self.open_links():
            if link.peer_id != exclude:
                link.send(frame)

    # --- Receiving ---

    async def _accept(self, channel: Channel) -> None:
        """Host side: run one incoming channel until it closes."""
        if self._closed:
            await channel.close()
            return

        first = await channel.recv()
        if first is None:
            return
        try:
            envelope = decode_message(first)
        except ProtocolError as e:
            logger.warning("Rejected channel with bad handshake: %s", e)
            await channel.close()
            return
        if not isinstance(envelope.message, Hello) or envelope.message.peer_id in self.links:
            logger.warning("Rejected channel: expected a hello from a new peer")
            await channel.close()
            return

        peer_id = envelope.message.peer_id
        link = PeerLink(peer_id, channel)
        self.links[peer_id] = link
        link.start()

        # Snapshot to the newcomer first, then tell everyone else.
        link.send(encode_message(PeerList(peers=list(self.links.keys())), sender=self.peer_id))
        self.broadcast(PeerJoined(peer_id=peer_id), exclude=peer_id)
        logger.info("Peer joined: %s", peer_id)

        self.peer_connected.emit(peer_id)
        self.peer_count_changed.emit(self.peer_count)

        await self._read_loop(link)

    async def _read_loop(self, link: PeerLink) -> None:
        try:
            while True:
                raw = await link.recv()
                if raw is None:
                    break
                self._handle_frame(raw, link.peer_id)
        except (ConnectionError, OSError) as e:
            logger.warning("Link to %s failed: %s", link.peer_id, e)
        finally:
            await self._drop_link(link)

    def _handle_frame(self, raw: str, link_peer_id: str) -> None:
        try:
            envelope = decode_message(raw)
        except ProtocolError as e:
            logger.debug("Dropped frame from %s: %s", link_peer_id, e)
            return

        msg_type = envelope.type
        if msg_type == MessageType.HELLO:
            return

        if self.is_host and msg_type != MessageType.PEER_LIST:
            self.broadcast(envelope.message, exclude=link_peer_id, sender=envelope.sender or link_peer_id)
        elif not self.is_host:
            self._track_participants(envelope)

        try:
            self.message_received.emit(envelope, link_peer_id)
        except Exception:
            # A failing listener must not take the link down with it.
            logger.exception("Error handling %s from %s", msg_type.value, link_peer_id)

    def _track_participants(self, envelope: Envelope) -> None:
        """Joiner side: derive the room size from infrastructure messages."""
        message = envelope.message
        if isinstance(message, PeerList):
            # The list names every joiner, this one included; add the host.
            self._participants = 1 + len(message.peers)
        elif isinstance(message, PeerJoined):
            self._participants += 1
        elif isinstance(message, PeerLeft):
            self._participants = max(1, self._participants - 1)
        else:
            return
        self.peer_count_changed.emit(self._participants)

    async def _drop_link(self, link: PeerLink) -> None:
        if self.links.get(link.peer_id) is not link:
            return
        del self.links[link.peer_id]
        await link.close()
        if self._closed:
            return

        logger.info("Peer left: %s", link.peer_id)
        self.peer_disconnected.emit(link.peer_id)

        if self.is_host:
            self.broadcast(PeerLeft(peer_id=link.peer_id))
            self.peer_count_changed.emit(self.peer_count)
        elif link.peer_id == self.room_id:
            logger.warning("Lost connection to host %s", self.room_id)
            self.session_ended.emit()
