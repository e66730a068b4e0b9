"""Message protocol shared by every participant of a sketch quiz room.

Each message travels as one JSON object per channel frame:

    {"type": "draw", "from": "<origin peer id>", "x": 10.0, "y": 20.0}

Frames are decoded exactly once, at the relay boundary, into one of the
message dataclasses below. Everything downstream works with those typed
values instead of re-testing tag strings.
"""
import json
import math
import re
from dataclasses import MISSING, dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Type, Union


class MessageType(Enum):
    """Wire tags of every message type."""
    # Drawing (batched)
    DRAW_START = "draw-start"
    DRAW = "draw"
    DRAW_END = "draw-end"
    CLEAR = "clear"
    CURSOR_MOVE = "cursor-move"

    # Session infrastructure
    HELLO = "hello"
    PEER_LIST = "peer-list"
    PEER_JOINED = "peer-joined"
    PEER_LEFT = "peer-left"

    # Game
    PLAYER_JOIN = "player-join"
    START_GAME = "start-game"
    CHAT = "chat"
    WORD_SELECTED = "word-selected"


class ProtocolError(ValueError):
    """Raised when a frame cannot be decoded into a known message."""


class Message:
    """Base class of all protocol messages."""

    TYPE: ClassVar[MessageType]

    def to_payload(self) -> Dict[str, Any]:
        """Return the message fields keyed by their wire (camelCase) names."""
        return {_wire_key(f.name): getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Message":
        """Build the message from a decoded frame, validating field types."""
        kwargs = {}
        for f in fields(cls):
            key = _wire_key(f.name)
            if key not in payload:
                if _has_default(f):
                    continue
                raise ProtocolError(f"{cls.TYPE.value}: missing field '{key}'")
            kwargs[f.name] = _coerce(cls.TYPE, key, f.type, payload[key])
        return cls(**kwargs)


# --- Drawing ---

@dataclass(frozen=True)
class DrawStart(Message):
    TYPE: ClassVar[MessageType] = MessageType.DRAW_START
    x: float
    y: float
    color: str
    size: float
    eraser: bool = False


@dataclass(frozen=True)
class Draw(Message):
    TYPE: ClassVar[MessageType] = MessageType.DRAW
    x: float
    y: float


@dataclass(frozen=True)
class DrawEnd(Message):
    TYPE: ClassVar[MessageType] = MessageType.DRAW_END


@dataclass(frozen=True)
class Clear(Message):
    TYPE: ClassVar[MessageType] = MessageType.CLEAR


@dataclass(frozen=True)
class CursorMove(Message):
    TYPE: ClassVar[MessageType] = MessageType.CURSOR_MOVE
    x: float
    y: float
    color: str


# --- Infrastructure ---

@dataclass(frozen=True)
class Hello(Message):
    """First frame a joiner sends so the host knows who is on the link."""
    TYPE: ClassVar[MessageType] = MessageType.HELLO
    peer_id: str


@dataclass(frozen=True)
class PeerList(Message):
    TYPE: ClassVar[MessageType] = MessageType.PEER_LIST
    peers: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PeerJoined(Message):
    TYPE: ClassVar[MessageType] = MessageType.PEER_JOINED
    peer_id: str


@dataclass(frozen=True)
class PeerLeft(Message):
    TYPE: ClassVar[MessageType] = MessageType.PEER_LEFT
    peer_id: str


# --- Game ---

@dataclass(frozen=True)
class PlayerJoin(Message):
    TYPE: ClassVar[MessageType] = MessageType.PLAYER_JOIN
    peer_id: str
    nickname: str


@dataclass(frozen=True)
class StartGame(Message):
    TYPE: ClassVar[MessageType] = MessageType.START_GAME
    turn_order: Optional[List[str]] = None


@dataclass(frozen=True)
class Chat(Message):
    TYPE: ClassVar[MessageType] = MessageType.CHAT
    nickname: str
    message: str


@dataclass(frozen=True)
class WordSelected(Message):
    TYPE: ClassVar[MessageType] = MessageType.WORD_SELECTED
    word: str


MESSAGE_CLASSES: Dict[MessageType, Type[Message]] = {
    cls.TYPE: cls for cls in (
        DrawStart, Draw, DrawEnd, Clear, CursorMove,
        Hello, PeerList, PeerJoined, PeerLeft,
        PlayerJoin, StartGame, Chat, WordSelected,
    )
}

# Delivery tiers
BATCHED_TYPES = frozenset({
    MessageType.DRAW_START,
    MessageType.DRAW,
    MessageType.DRAW_END,
    MessageType.CLEAR,
    MessageType.CURSOR_MOVE,
})


def is_immediate(message: Message) -> bool:
    """Check whether a message skips the batching queue."""
    return message.TYPE not in BATCHED_TYPES


@dataclass(frozen=True)
class Envelope:
    """A decoded message plus the id of the participant that produced it."""
    message: Message
    sender: Optional[str] = None

    @property
    def type(self) -> MessageType:
        return self.message.TYPE


def encode_message(message: Message, sender: Optional[str] = None) -> str:
    """Serialize a message to a JSON frame."""
    frame: Dict[str, Any] = {"type": message.TYPE.value}
    if sender is not None:
        frame["from"] = sender
    frame.update(message.to_payload())
    return json.dumps(frame, ensure_ascii=False)


def decode_message(raw: Union[str, bytes]) -> Envelope:
    """Deserialize a JSON frame.

    Raises:
        ProtocolError: The frame is not JSON, has no known type, or is
            missing/has malformed payload fields.
    """
    try:
        obj = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise ProtocolError(f"invalid JSON frame: {e}") from e

    if not isinstance(obj, dict):
        raise ProtocolError("frame is not a JSON object")

    try:
        msg_type = MessageType(obj.get("type"))
    except ValueError:
        raise ProtocolError(f"unknown message type: {obj.get('type')!r}") from None

    sender = obj.get("from")
    if sender is not None and not isinstance(sender, str):
        raise ProtocolError("'from' must be a string")

    message = MESSAGE_CLASSES[msg_type].from_payload(obj)
    return Envelope(message=message, sender=sender)


# --- Helpers ---

_CAMEL_BOUNDARY = re.compile(r"_([a-z])")


def _wire_key(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(lambda m: m.group(1).upper(), name)


def _has_default(f) -> bool:
    return f.default is not MISSING or f.default_factory is not MISSING


def _coerce(msg_type: MessageType, key: str, annotation: Any, value: Any) -> Any:
    """Validate one payload value against its dataclass annotation."""
    if annotation is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ProtocolError(f"{msg_type.value}: '{key}' must be a number")
        try:
            number = float(value)
        except OverflowError:
            raise ProtocolError(f"{msg_type.value}: '{key}' is out of range") from None
        if not math.isfinite(number):
            raise ProtocolError(f"{msg_type.value}: '{key}' must be finite")
        return number
    if annotation is bool:
        if not isinstance(value, bool):
            raise ProtocolError(f"{msg_type.value}: '{key}' must be a boolean")
        return value
    if annotation is str:
        if not isinstance(value, str):
            raise ProtocolError(f"{msg_type.value}: '{key}' must be a string")
        return value
    if annotation in (List[str], Optional[List[str]]):
        if value is None and annotation == Optional[List[str]]:
            return None
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ProtocolError(f"{msg_type.value}: '{key}' must be a list of strings")
        return list(value)
    return value
