"""Per-participant game context.

Bundles the pieces one participant needs, so they are passed around
explicitly instead of living in module globals.
"""

from dataclasses import dataclass, field
from typing import Optional

from client.board import StrokeBoard
from game.config_loader import ConfigLoader, config
from game.engine import QuizEngine
from session.relay import DEFAULT_BATCH_DELAY, SessionRelay
from session.transport import Transport


@dataclass
class BrushState:
    """Local drawing tool settings."""
    color: str = "#000000"
    size: float = 5.0
    eraser: bool = False


@dataclass
class GameContext:
    """Everything one participant owns: link set, quiz replica and board."""

    relay: SessionRelay
    engine: QuizEngine
    board: StrokeBoard = field(default_factory=StrokeBoard)
    nickname: str = ""
    brush: BrushState = field(default_factory=BrushState)

    @property
    def peer_id(self) -> str:
        return self.relay.peer_id

    @property
    def room_id(self) -> Optional[str]:
        return self.relay.room_id

    @classmethod
    def create(
        cls,
        nickname: str,
        transport: Optional[Transport] = None,
        loader: Optional[ConfigLoader] = None,
        **engine_options,
    ) -> "GameContext":
        """Build a context from configuration."""
        loader = loader or config
        batch_ms = loader.get("network", "batch_delay_ms", default=None)
        batch_delay = batch_ms / 1000 if batch_ms else DEFAULT_BATCH_DELAY
        return cls(
            relay=SessionRelay(transport=transport, batch_delay=batch_delay),
            engine=QuizEngine(loader=loader, **engine_options),
            nickname=nickname,
        )
