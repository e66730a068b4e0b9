"""Host-relay session layer for peer-to-peer rooms."""

from .protocol import (
    MessageType, Message, Envelope, ProtocolError,
    DrawStart, Draw, DrawEnd, Clear, CursorMove,
    Hello, PeerList, PeerJoined, PeerLeft,
    PlayerJoin, StartGame, Chat, WordSelected,
    encode_message, decode_message, is_immediate,
)
from .link import PeerLink
from .relay import SessionRelay
from .rooms import room_url, room_id_from_url
from .transport import WebSocketTransport

__all__ = [
    "MessageType",
    "Message",
    "Envelope",
    "ProtocolError",
    "DrawStart",
    "Draw",
    "DrawEnd",
    "Clear",
    "CursorMove",
    "Hello",
    "PeerList",
    "PeerJoined",
    "PeerLeft",
    "PlayerJoin",
    "StartGame",
    "Chat",
    "WordSelected",
    "encode_message",
    "decode_message",
    "is_immediate",
    "PeerLink",
    "SessionRelay",
    "room_url",
    "room_id_from_url",
    "WebSocketTransport",
]
