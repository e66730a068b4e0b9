"""Turn-based draw-and-guess state machine.

Every participant runs its own engine and feeds it the same messages, so the
replicas stay in step without a server:
- Roster: players join and leave; each gets an avatar/color profile
- Turns: players take turns drawing in a fixed turn order, for a number of rounds
- Countdown: one tick per second, with two hint reveals along the way
- Guesses: chat lines are checked against the secret word and scored by speed

Precondition violations (starting with too few players, choosing a word out of
turn, ...) are ignored rather than raised, so the machine never ends up in a
state it cannot represent.
"""

import asyncio
import logging
import math
from typing import Callable, Dict, List, Optional, Sequence

from game.config_loader import ConfigLoader, config
from game.events import GamePhase, GuessResult, RankingEntry, StateChange
from game.player import Player, Profile, ProfilePool
from game.turn_timer import TurnTimer
from game.words import load_word_bank, pick_words
from utils.signals import Signal

logger = logging.getLogger(__name__)

BASE_SCORE = 100
MAX_TIME_BONUS = 50
DEFAULT_ROUND_TIME = 180


def normalize_guess(text: str) -> str:
    """Normalize a guess or a word for comparison."""
    return (text or "").strip().casefold()


class QuizEngine:
    """Quiz state machine for one room.

    Signals:
        timer_updated(seconds_remaining)
        scores_updated()
        state_changed(StateChange)
    """

    def __init__(
        self,
        round_time: Optional[int] = None,
        total_rounds: Optional[int] = None,
        hint_thresholds: Optional[Sequence[int]] = None,
        max_players: Optional[int] = None,
        min_players: Optional[int] = None,
        turn_end_delay: Optional[float] = None,
        word_choices: Optional[int] = None,
        word_bank: Optional[Sequence[str]] = None,
        profile_pool: Optional[ProfilePool] = None,
        tick_interval: float = 1.0,
        loader: Optional[ConfigLoader] = None,
    ):
        loader = loader or config

        # Settings
        if round_time is None:
            round_time = loader.get("game", "round_time", default=DEFAULT_ROUND_TIME)
        if round_time <= 0:
            logger.warning("round_time must be positive, got %s; using %s", round_time, DEFAULT_ROUND_TIME)
            round_time = DEFAULT_ROUND_TIME
        self.round_time = round_time
        self.total_rounds = total_rounds if total_rounds is not None else loader.get("game", "total_rounds", default=3)
        thresholds = hint_thresholds or loader.get("game", "hint_thresholds", default=[30, 60])
        self.hint_thresholds = tuple(sorted(thresholds))[:2]
        self.max_players = max_players if max_players is not None else loader.get("game", "max_players", default=6)
        self.min_players = min_players if min_players is not None else loader.get("game", "min_players", default=2)
        self.turn_end_delay = (
            turn_end_delay if turn_end_delay is not None
            else loader.get("game", "turn_end_delay", default=2)
        )
        self.word_choices = word_choices if word_choices is not None else loader.get("game", "word_choices", default=3)
        if word_bank is not None:
            self.word_bank = list(word_bank)
        else:
            self.word_bank = load_word_bank(loader.get("game", "word_language", default="en"), loader)
        self.profile_pool = profile_pool or ProfilePool.from_config(loader)

        # Players
        self.players: Dict[str, Player] = {}
        self.my_peer_id: Optional[str] = None
        self.my_nickname: Optional[str] = None

        # State
        self._phase = GamePhase.LOBBY
        self.current_round = 0
        self.turn_order: List[str] = []
        self.turn_index = 0
        self.current_drawer: Optional[str] = None
        self.current_word: Optional[str] = None
        self.time_left = self.round_time
        self.hint_level = 0

        # Timers
        self._timer = TurnTimer(self.tick, interval=tick_interval)
        self._next_turn: Optional[asyncio.TimerHandle] = None

        # Observers
        self.timer_updated = Signal("timer_updated")
        self.scores_updated = Signal("scores_updated")
        self.state_changed = Signal("state_changed")

    @property
    def phase(self) -> GamePhase:
        """Current game phase."""
        return self._phase

    @property
    def in_progress(self) -> bool:
        return self._phase in (GamePhase.PLAYING, GamePhase.TURN_ACTIVE, GamePhase.TURN_END)

    @property
    def timer_running(self) -> bool:
        return self._timer.is_running

    # --- Observer registration ---

    def on_timer_update(self, listener: Callable[[int], None]) -> Callable[[], bool]:
        return self.timer_updated.connect(listener)

    def on_score_update(self, listener: Callable[[], None]) -> Callable[[], bool]:
        return self.scores_updated.connect(listener)

    def on_game_state_change(self, listener: Callable[[StateChange], None]) -> Callable[[], bool]:
        return self.state_changed.connect(listener)

    # --- Roster ---

    def set_local_player(self, peer_id: str, nickname: str) -> bool:
        """Record who this participant is and add them to the roster."""
        self.my_peer_id = peer_id
        self.my_nickname = nickname
        return self.add_player(peer_id, nickname)

    def add_player(self, peer_id: str, nickname: str, profile: Optional[Profile] = None) -> bool:
        """Add a player. Returns False if already present or the room is full."""
        if not peer_id or peer_id in self.players:
            return False
        if len(self.players) >= self.max_players:
            logger.info("Room full, rejected player %s", peer_id)
            return False

        self.players[peer_id] = Player(
            peer_id=peer_id,
            nickname=nickname,
            profile=profile or self.profile_pool.generate(list(self.players.values())),
        )
        self._sync_turn_order()
        self.scores_updated.emit()
        return True

    def remove_player(self, peer_id: str) -> bool:
        """Remove a player, ending the turn early if they were drawing."""
        if self.players.pop(peer_id, None) is None:
            return False

        was_drawing = (
            peer_id == self.current_drawer
            and self._phase in (GamePhase.PLAYING, GamePhase.TURN_ACTIVE)
        )
        if peer_id in self.turn_order:
            # Keep turn_index on the same upcoming drawer once the order shrinks.
            removed_at = self.turn_order.index(peer_id)
            if removed_at < self.turn_index or was_drawing:
                self.turn_index -= 1
        self._sync_turn_order()
        self.scores_updated.emit()

        if self.in_progress and not self.turn_order:
            self.end_game()
        elif was_drawing:
            self.end_turn()
        elif self._phase == GamePhase.TURN_ACTIVE:
            self._end_turn_if_all_guessed()
        return True

    def _sync_turn_order(self) -> None:
        """Make turn_order a permutation of the roster, keeping existing order."""
        order = [pid for pid in self.turn_order if pid in self.players]
        order.extend(pid for pid in self.players if pid not in order)
        self.turn_order = order

    # --- Game flow ---

    def start_game(self, turn_order: Optional[Sequence[str]] = None) -> bool:
        """Start a game. Returns False with fewer than min_players players.

        Args:
            turn_order: Drawing order announced by the participant that
                started the game. Ignored unless it names exactly the roster.
        """
        if len(self.players) < self.min_players:
            return False

        self._cancel_timers()
        for player in list(self.players.values()):
            player.score = 0
            player.has_guessed = False

        if turn_order is not None and len(turn_order) == len(self.players) and set(turn_order) == set(self.players):
            self.turn_order = list(turn_order)
        else:
            self.turn_order = list(self.players.keys())

        self._phase = GamePhase.PLAYING
        self.current_round = 1
        self.turn_index = 0
        self.scores_updated.emit()
        self.start_new_turn()
        return True

    def start_new_turn(self) -> None:
        """Hand the pen to the next drawer, rolling over rounds as needed."""
        if not self.in_progress:
            return
        self._cancel_timers()
        if not self.turn_order:
            return

        if self.turn_index >= len(self.turn_order):
            self.current_round += 1
            self.turn_index = 0

            if self.current_round > self.total_rounds:
                self.end_game()
                return

        self.current_drawer = self.turn_order[self.turn_index]
        self.current_word = None
        self.time_left = self.round_time
        self.hint_level = 0

        for player in list(self.players.values()):
            player.has_guessed = False

        self._phase = GamePhase.PLAYING
        self.state_changed.emit(StateChange.TURN_START)

    def get_random_words(self, count: Optional[int] = None) -> List[str]:
        """Draw word candidates for the drawer to choose from."""
        return pick_words(self.word_bank, count or self.word_choices)

    def select_word(self, word: str) -> bool:
        """Set the secret word and start the countdown."""
        if self._phase != GamePhase.PLAYING or self.current_drawer is None:
            return False
        chosen = (word or "").strip()
        if not chosen:
            return False

        self.current_word = chosen
        self.time_left = self.round_time
        self._phase = GamePhase.TURN_ACTIVE
        self._timer.start()
        self.state_changed.emit(StateChange.DRAWING)
        return True

    def tick(self) -> None:
        """Advance the countdown by one second."""
        if self._phase != GamePhase.TURN_ACTIVE:
            return

        self.time_left = max(0, self.time_left - 1)

        elapsed = self.round_time - self.time_left
        first, second = (self.hint_thresholds + (None, None))[:2]
        if self.hint_level < 1 and first is not None and elapsed >= first:
            self.hint_level = 1
            self.state_changed.emit(StateChange.HINT)
        elif self.hint_level < 2 and second is not None and elapsed >= second:
            self.hint_level = 2
            self.state_changed.emit(StateChange.HINT)

        self.timer_updated.emit(self.time_left)

        if self.time_left <= 0:
            self.end_turn()

    def end_turn(self) -> None:
        """Finish the current turn and schedule the next one."""
        if self._phase not in (GamePhase.PLAYING, GamePhase.TURN_ACTIVE):
            return

        self._timer.cancel()
        self.turn_index += 1
        self._phase = GamePhase.TURN_END
        self.state_changed.emit(StateChange.TURN_END)
        self._schedule_next_turn()

    def end_game(self) -> None:
        """Stop the game and announce the final ranking."""
        self._cancel_timers()
        self._phase = GamePhase.GAME_END
        self.state_changed.emit(StateChange.GAME_END)

    def stop(self) -> None:
        """Cancel every pending timer, e.g. when leaving the room."""
        self._cancel_timers()

    def _schedule_next_turn(self) -> None:
        if self._next_turn is not None:
            self._next_turn.cancel()
            self._next_turn = None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.start_new_turn()
            return
        self._next_turn = loop.call_later(self.turn_end_delay, self._on_next_turn)

    def _on_next_turn(self) -> None:
        self._next_turn = None
        self.start_new_turn()

    def _cancel_timers(self) -> None:
        self._timer.cancel()
        if self._next_turn is not None:
            self._next_turn.cancel()
            self._next_turn = None

    # --- Guessing ---

    def check_answer(self, peer_id: str, text: str) -> GuessResult:
        """Check a chat line from peer_id against the secret word."""
        player = self.players.get(peer_id)
        if player is None or self._phase != GamePhase.TURN_ACTIVE or not self.current_word:
            return GuessResult(correct=False)

        if peer_id == self.current_drawer:
            return GuessResult(correct=False)

        if player.has_guessed:
            return GuessResult(correct=False, already_guessed=True)

        if normalize_guess(text) != normalize_guess(self.current_word):
            return GuessResult(correct=False)

        # 100 points plus up to 50 for speed
        score = BASE_SCORE + math.floor(MAX_TIME_BONUS * self.time_left / self.round_time)
        player.add_points(score)
        player.has_guessed = True
        self.scores_updated.emit()

        self._end_turn_if_all_guessed()
        return GuessResult(correct=True, score=score)

    def _end_turn_if_all_guessed(self) -> None:
        guessers = [p for pid, p in list(self.players.items()) if pid != self.current_drawer]
        if guessers and all(p.has_guessed for p in guessers):
            self.end_turn()

    def get_hint(self) -> str:
        """Masked rendering of the secret word, one unit per character."""
        if not self.current_word:
            return ""

        chars = list(self.current_word)
        revealed = set()
        if self.hint_level >= 1:
            revealed.add(0)
        if self.hint_level >= 2:
            revealed.add(len(chars) // 2)

        return " ".join(c if i in revealed else "_" for i, c in enumerate(chars))

    # --- Queries ---

    def get_ranking(self) -> List[RankingEntry]:
        """Players by descending score."""
        ranked = sorted(self.players.values(), key=lambda p: -p.score)
        return [RankingEntry(peer_id=p.peer_id, nickname=p.nickname, score=p.score) for p in ranked]

    def is_my_turn(self) -> bool:
        return self.my_peer_id is not None and self.current_drawer == self.my_peer_id

    def is_drawer(self, peer_id: str) -> bool:
        return peer_id is not None and peer_id == self.current_drawer
