"""Glue between the session relay, the quiz engine and the board.

Local actions update this participant's replica first and are then sent to
the room. Remote messages are dispatched by type onto the same replica.
"""

import logging
from typing import Optional

from client.context import GameContext
from game.events import GamePhase, GuessResult
from session.protocol import (
    Chat, Clear, CursorMove, Draw, DrawEnd, DrawStart, Envelope,
    Message, PeerJoined, PeerLeft, PeerList, PlayerJoin, StartGame,
    WordSelected,
)
from utils.signals import Signal

logger = logging.getLogger(__name__)


class GameController:
    """Drives one participant's game.

    Signals:
        chat_received(peer_id, nickname, text, GuessResult)
        roster_changed()
        session_ended()
    """

    def __init__(self, context: GameContext):
        self.context = context
        self.relay = context.relay
        self.engine = context.engine
        self.board = context.board

        self.chat_received = Signal("chat_received")
        self.roster_changed = Signal("roster_changed")
        self.session_ended = Signal("session_ended")

        self._dispatch = {
            PlayerJoin: self._on_player_join,
            StartGame: self._on_start_game,
            WordSelected: self._on_word_selected,
            Chat: self._on_chat,
            PeerList: self._on_peer_list,
            PeerJoined: self._on_peer_joined,
            PeerLeft: self._on_peer_left,
        }

        self.relay.message_received.connect(self._on_message)
        self.relay.peer_connected.connect(self._on_peer_connected)
        self.relay.peer_disconnected.connect(self._on_peer_disconnected)
        self.relay.session_ended.connect(self._on_session_ended)

    @property
    def my_peer_id(self) -> str:
        return self.relay.peer_id

    # --- Session ---

    async def host(self) -> str:
        """Create a room and join it as its first player."""
        room_id = await self.relay.create_session()
        self.engine.set_local_player(self.relay.peer_id, self.context.nickname)
        self.roster_changed.emit()
        return room_id

    async def join(self, room_id: str) -> str:
        """Join the room hosted at room_id."""
        self.engine.set_local_player(self.relay.peer_id, self.context.nickname)
        await self.relay.join_session(room_id)
        self.roster_changed.emit()
        return room_id

    async def leave(self):
        """Stop timers and close every link."""
        self.engine.stop()
        await self.relay.disconnect()

    def announce_self(self):
        """Tell the room who this participant is."""
        self.relay.send(PlayerJoin(peer_id=self.my_peer_id, nickname=self.context.nickname))

    # --- Game actions ---

    def start_game(self) -> bool:
        """Start the game for everyone. Returns False with too few players."""
        if not self.engine.start_game():
            return False
        self.relay.send(StartGame(turn_order=list(self.engine.turn_order)))
        return True

    def word_candidates(self):
        return self.engine.get_random_words()

    def choose_word(self, word: str) -> bool:
        """Drawer picks the secret word."""
        if not self.engine.is_my_turn():
            return False
        if not self.engine.select_word(word):
            return False
        self.board.clear()
        self.relay.send(WordSelected(word=self.engine.current_word))
        return True

    def submit_chat(self, text: str) -> GuessResult:
        """Send a chat line, which doubles as a guess."""
        text = text.strip()
        if not text:
            return GuessResult(correct=False)
        result = self.engine.check_answer(self.my_peer_id, text)
        self.relay.send(Chat(nickname=self.context.nickname, message=text))
        self.chat_received.emit(self.my_peer_id, self.context.nickname, text, result)
        return result

    # --- Drawing ---

    def can_draw(self) -> bool:
        """Anyone may doodle in the lobby; during a game only the drawer."""
        if self.engine.in_progress:
            return self.engine.is_my_turn()
        return True

    def begin_stroke(self, x: float, y: float) -> bool:
        if not self.can_draw():
            return False
        brush = self.context.brush
        self._draw_local(DrawStart(x=x, y=y, color=brush.color, size=brush.size, eraser=brush.eraser))
        return True

    def extend_stroke(self, x: float, y: float) -> bool:
        if self.board.active_stroke(self.my_peer_id) is None:
            return False
        self._draw_local(Draw(x=x, y=y))
        return True

    def end_stroke(self) -> bool:
        if self.board.active_stroke(self.my_peer_id) is None:
            return False
        self._draw_local(DrawEnd())
        return True

    def clear_board(self) -> bool:
        if not self.can_draw():
            return False
        self._draw_local(Clear())
        return True

    def move_cursor(self, x: float, y: float):
        self.relay.send(CursorMove(x=x, y=y, color=self.context.brush.color))

    def _draw_local(self, message: Message):
        self.board.apply(message, self.my_peer_id)
        self.relay.send(message)

    # --- Inbound ---

    def _on_message(self, envelope: Envelope, link_peer_id: str):
        origin = envelope.sender or link_peer_id
        message = envelope.message

        if self.board.apply(message, origin):
            return

        handler = self._dispatch.get(type(message))
        if handler is not None:
            handler(message, origin)

    def _on_player_join(self, msg: PlayerJoin, origin: str):
        if self.engine.add_player(msg.peer_id, msg.nickname):
            logger.info("%s joined the game", msg.nickname)
            self.roster_changed.emit()

    def _on_start_game(self, msg: StartGame, origin: str):
        if self.engine.phase not in (GamePhase.LOBBY, GamePhase.GAME_END):
            logger.debug("Ignoring start-game from %s while a game is running", origin)
            return
        self.board.clear()
        self.engine.start_game(turn_order=msg.turn_order)

    def _on_word_selected(self, msg: WordSelected, origin: str):
        # This replica may still be waiting out the turn-end delay.
        if self.engine.phase == GamePhase.TURN_END:
            self.engine.start_new_turn()
        if not self.engine.is_drawer(origin):
            logger.debug("Ignoring word selection from non-drawer %s", origin)
            return
        self.board.clear()
        self.engine.select_word(msg.word)

    def _on_chat(self, msg: Chat, origin: str):
        result = self.engine.check_answer(origin, msg.message)
        self.chat_received.emit(origin, msg.nickname, msg.message, result)

    def _on_peer_list(self, msg: PeerList, origin: str):
        self.announce_self()

    def _on_peer_joined(self, msg: PeerJoined, origin: str):
        self.announce_self()

    def _on_peer_left(self, msg: PeerLeft, origin: str):
        self._forget_peer(msg.peer_id)

    def _on_peer_connected(self, peer_id: str):
        # The host greets every newcomer; joiners wait for the peer list.
        if self.relay.is_host:
            self.announce_self()

    def _on_peer_disconnected(self, peer_id: str):
        if self.relay.is_host:
            self._forget_peer(peer_id)

    def _on_session_ended(self):
        self.engine.stop()
        self.session_ended.emit()

    def _forget_peer(self, peer_id: Optional[str]):
        self.board.remove_cursor(peer_id)
        if self.engine.remove_player(peer_id):
            self.roster_changed.emit()
