"""Shared drawing board state.

Strokes from every participant land here, keyed by who drew them, so two
people drawing at once never splice into each other's lines.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from session.protocol import Clear, CursorMove, Draw, DrawEnd, DrawStart, Message


@dataclass
class Stroke:
    """One continuous line drawn by a participant."""
    origin: str
    color: str
    size: float
    eraser: bool = False
    points: List[Tuple[float, float]] = field(default_factory=list)
    finished: bool = False


@dataclass
class Cursor:
    """Last reported pointer position of a remote participant."""
    x: float
    y: float
    color: str


class StrokeBoard:
    """Replays drawing messages into strokes and cursor positions."""

    def __init__(self):
        self.strokes: List[Stroke] = []
        self.cursors: Dict[str, Cursor] = {}
        self._active: Dict[str, Stroke] = {}

        self._handlers = {
            DrawStart: self._on_draw_start,
            Draw: self._on_draw,
            DrawEnd: self._on_draw_end,
            Clear: self._on_clear,
            CursorMove: self._on_cursor_move,
        }

    def apply(self, message: Message, origin: str) -> bool:
        """Apply a drawing message. Returns False for non-drawing messages."""
        handler = self._handlers.get(type(message))
        if handler is None:
            return False
        handler(message, origin)
        return True

    def active_stroke(self, origin: str) -> Optional[Stroke]:
        return self._active.get(origin)

    def clear(self):
        """Erase every stroke."""
        self.strokes.clear()
        self._active.clear()

    def remove_cursor(self, origin: str):
        self.cursors.pop(origin, None)
        self._active.pop(origin, None)

    def point_count(self) -> int:
        return sum(len(s.points) for s in self.strokes)

    def _on_draw_start(self, msg: DrawStart, origin: str):
        stroke = Stroke(origin=origin, color=msg.color, size=msg.size, eraser=msg.eraser)
        stroke.points.append((msg.x, msg.y))
        self.strokes.append(stroke)
        self._active[origin] = stroke

    def _on_draw(self, msg: Draw, origin: str):
        stroke = self._active.get(origin)
        if stroke is None:
            # Lost the draw-start; nothing to continue
            return
        stroke.points.append((msg.x, msg.y))

    def _on_draw_end(self, msg: DrawEnd, origin: str):
        stroke = self._active.pop(origin, None)
        if stroke is not None:
            stroke.finished = True

    def _on_clear(self, msg: Clear, origin: str):
        self.clear()

    def _on_cursor_move(self, msg: CursorMove, origin: str):
        self.cursors[origin] = Cursor(x=msg.x, y=msg.y, color=msg.color)
