"""Terminal client for the sketch quiz.

The client runs entirely on one asyncio loop: the relay, the quiz timers and
the questionary prompts all share it, so engine callbacks can print straight
to the console.
"""

import asyncio
import logging
from typing import List, Optional, Tuple

from rich.logging import RichHandler

from client import ui
from client.context import GameContext
from client.controller import GameController
from game.events import GamePhase, GuessResult, StateChange
from session.rooms import room_url

logger = logging.getLogger(__name__)

# Countdown values worth printing; every other tick stays quiet.
ANNOUNCED_SECONDS = {120, 60, 30, 10, 5, 4, 3, 2, 1}


def setup_logging(verbose: bool = False):
    """Route log records through rich so they don't tear the prompt."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=ui.console, show_path=False)],
    )


def parse_points(args: List[str]) -> List[Tuple[float, float]]:
    """Parse "x,y" pairs for the /draw command.

    Raises:
        ValueError: A pair is malformed.
    """
    points = []
    for arg in args:
        x, sep, y = arg.partition(",")
        if not sep:
            raise ValueError(f"Expected x,y but got '{arg}'")
        points.append((float(x), float(y)))
    return points


class GameClient:
    """Chat-driven game client.

    Every input line is either a /command or a chat message, and chat
    messages double as guesses.
    """

    def __init__(self, context: GameContext, share_base: Optional[str] = None):
        self.context = context
        self.engine = context.engine
        self.controller = GameController(context)
        self.share_base = share_base

        self._running = False
        self._prompt: Optional[asyncio.Future] = None

        self._commands = {
            "/start": self._cmd_start,
            "/players": self._cmd_players,
            "/rank": self._cmd_rank,
            "/pick": self._cmd_pick,
            "/draw": self._cmd_draw,
            "/color": self._cmd_color,
            "/size": self._cmd_size,
            "/eraser": self._cmd_eraser,
            "/clear": self._cmd_clear,
            "/help": self._cmd_help,
            "/quit": self._cmd_quit,
        }

        self.engine.on_game_state_change(self._on_state_change)
        self.engine.on_timer_update(self._on_timer)
        self.controller.chat_received.connect(self._on_chat)
        self.controller.session_ended.connect(self._on_session_ended)
        self.context.relay.peer_count_changed.connect(self._on_peer_count)

    @property
    def running(self) -> bool:
        return self._running

    async def run(self, room_id: Optional[str] = None) -> int:
        """Host (or join room_id) and process input until /quit.

        Returns:
            Process exit code.
        """
        try:
            if room_id:
                await self.controller.join(room_id)
            else:
                room_id = await self.controller.host()
        except ConnectionError as e:
            ui.print_error(str(e))
            return 1

        ui.print_welcome()
        share_link = room_url(self.share_base, room_id) if self.share_base else None
        ui.print_room_info(room_id, share_link, is_host=self.context.relay.is_host)

        self._running = True
        try:
            while self._running:
                line = await self._read_line()
                if line is None:
                    break
                await self.handle_line(line)
        finally:
            self._running = False
            await self.controller.leave()
        return 0

    async def _read_line(self) -> Optional[str]:
        self._prompt = asyncio.ensure_future(ui.get_chat_line())
        try:
            await asyncio.wait([self._prompt])
        finally:
            prompt, self._prompt = self._prompt, None
        if prompt.cancelled():
            return None
        return prompt.result()

    async def handle_line(self, line: str):
        """Run a command or send a chat line."""
        line = line.strip()
        if not line:
            return

        if line.startswith("/"):
            name, *args = line.split()
            command = self._commands.get(name.lower())
            if command is None:
                ui.print_error(f"Unknown command {name}. Try /help")
                return
            await command(args)
            return

        self.controller.submit_chat(line)

    # --- Commands ---

    async def _cmd_start(self, args):
        if self.engine.in_progress:
            ui.print_error("A game is already running")
        elif not self.controller.start_game():
            ui.print_error(f"Need at least {self.engine.min_players} players to start")

    async def _cmd_players(self, args):
        ui.print_players(self.engine, self.context.relay.peer_count)

    async def _cmd_rank(self, args):
        ui.print_ranking(self.engine.get_ranking())

    async def _cmd_pick(self, args):
        if not self.engine.is_my_turn() or self.engine.phase != GamePhase.PLAYING:
            ui.print_error("It's not your turn to pick a word")
            return
        word = await ui.select_word(self.controller.word_candidates())
        if word and not self.controller.choose_word(word):
            ui.print_error("Too late to pick a word")

    async def _cmd_draw(self, args):
        try:
            points = parse_points(args)
        except ValueError as e:
            ui.print_error(str(e))
            return
        if not points:
            ui.print_error("Usage: /draw x,y [x,y ...]")
            return

        (x, y), rest = points[0], points[1:]
        if not self.controller.begin_stroke(x, y):
            ui.print_error("Only the drawer can draw right now")
            return
        for x, y in rest:
            self.controller.extend_stroke(x, y)
        self.controller.end_stroke()

    async def _cmd_color(self, args):
        if not args:
            ui.print_error("Usage: /color #RRGGBB")
            return
        self.context.brush.color = args[0]

    async def _cmd_size(self, args):
        try:
            self.context.brush.size = float(args[0])
        except (IndexError, ValueError):
            ui.print_error("Usage: /size N")

    async def _cmd_eraser(self, args):
        brush = self.context.brush
        brush.eraser = not brush.eraser
        ui.print_info(f"Eraser {'on' if brush.eraser else 'off'}")

    async def _cmd_clear(self, args):
        if not self.controller.clear_board():
            ui.print_error("Only the drawer can clear the board")

    async def _cmd_help(self, args):
        ui.print_info("Commands: " + " ".join(sorted(self._commands)))

    async def _cmd_quit(self, args):
        self._running = False

    # --- Callbacks ---

    def _on_state_change(self, change: StateChange):
        if change == StateChange.TURN_START:
            ui.print_turn_start(self.engine)
            if self.engine.is_my_turn():
                ui.print_info("Your turn! Type /pick to choose a word")
        elif change == StateChange.DRAWING:
            ui.print_drawing_started(self.engine)
        elif change == StateChange.HINT:
            ui.print_hint(self.engine)
        elif change == StateChange.TURN_END:
            ui.print_turn_end(self.engine)
        elif change == StateChange.GAME_END:
            ui.print_game_over(self.engine.get_ranking())

    def _on_timer(self, seconds: int):
        if seconds in ANNOUNCED_SECONDS:
            ui.print_timer(seconds)

    def _on_chat(self, peer_id: str, nickname: str, text: str, result: GuessResult):
        player = self.engine.players.get(peer_id)
        color = player.profile.color if player else "cyan"
        ui.print_chat(nickname, text, result, color=color)

    def _on_peer_count(self, count: int):
        logger.debug("Peer count: %d", count)

    def _on_session_ended(self):
        ui.print_error("Lost connection to the host")
        self._running = False
        if self._prompt is not None and not self._prompt.done():
            self._prompt.cancel()
