"""Phases and state-change tags of the quiz state machine."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class GamePhase(Enum):
    """Where the game currently is."""
    LOBBY = "lobby"
    PLAYING = "playing"          # turn started, drawer choosing a word
    TURN_ACTIVE = "turnActive"   # word chosen, countdown running
    TURN_END = "turnEnd"
    GAME_END = "gameEnd"


class StateChange(Enum):
    """Tags passed to game-state-change listeners."""
    TURN_START = "turnStart"
    DRAWING = "drawing"
    HINT = "hint"
    TURN_END = "turnEnd"
    GAME_END = "gameEnd"


@dataclass(frozen=True)
class GuessResult:
    """Outcome of checking one chat line against the secret word."""
    correct: bool
    score: Optional[int] = None
    already_guessed: bool = False


@dataclass(frozen=True)
class RankingEntry:
    peer_id: str
    nickname: str
    score: int
