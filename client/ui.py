"""Terminal UI components for the sketch quiz client using rich."""

from typing import List, Optional

import questionary
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from game.engine import QuizEngine
from game.events import GuessResult, RankingEntry
from version import VERSION


console = Console()


def clear_screen():
    """Clear the terminal screen."""
    console.clear()


def print_header(title: str, subtitle: str = ""):
    """Print a styled header."""
    header_text = Text(title, style="bold cyan")
    if subtitle:
        header_text.append(f"\n{subtitle}", style="dim")
    console.print(Panel(header_text, box=box.DOUBLE))


def print_welcome():
    print_header(f"SKETCH QUIZ          [{VERSION}]", "Draw, guess, score")
    console.print("[dim]Commands: /start /players /rank /clear /quit[/dim]\n")


def print_room_info(room_id: str, share_link: Optional[str] = None, is_host: bool = False):
    """Print how other players can join this room."""
    role = "Hosting" if is_host else "Joined"
    console.print(f"[green]{role} room[/green] [bold]{room_id}[/bold]")
    if share_link:
        console.print(f"[dim]Share link:[/dim] {share_link}")
    console.print()


def print_players(engine: QuizEngine, peer_count: Optional[int] = None):
    """Print the roster with scores."""
    title = "Players" if peer_count is None else f"Players ({peer_count} connected)"
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("", justify="center")
    table.add_column("Player", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Status", justify="center")

    for peer_id in engine.turn_order:
        player = engine.players[peer_id]
        name = f"[{player.profile.color}]{escape(player.nickname)}[/]"
        if peer_id == engine.my_peer_id:
            name += " [dim](you)[/dim]"

        status = ""
        if engine.is_drawer(peer_id) and engine.in_progress:
            status = "[magenta]Drawing[/magenta]"
        elif player.has_guessed:
            status = "[green]Guessed[/green]"

        table.add_row(player.profile.avatar, name, str(player.score), status)

    console.print(table)


def print_turn_start(engine: QuizEngine):
    """Announce whose turn it is."""
    drawer = engine.players.get(engine.current_drawer)
    name = escape(drawer.nickname) if drawer else "?"
    console.print(
        f"\n[bold cyan]Round {engine.current_round}/{engine.total_rounds}[/bold cyan] "
        f"- [bold]{name}[/bold] is choosing a word"
    )


def print_drawing_started(engine: QuizEngine):
    """Show the drawer the word, everyone else the masked hint."""
    if engine.is_my_turn():
        console.print(f"[magenta]Draw:[/magenta] [bold]{escape(engine.current_word or '')}[/bold]")
    else:
        console.print(f"[yellow]Guess the word:[/yellow] {escape(engine.get_hint())}")
    print_timer(engine.time_left)


def print_hint(engine: QuizEngine):
    console.print(f"[yellow]Hint:[/yellow] {escape(engine.get_hint())}")


def print_timer(seconds: int):
    if seconds <= 10:
        style = "bold red"
    elif seconds <= 30:
        style = "yellow"
    else:
        style = "green"
    console.print(f"[{style}]{seconds}s left[/{style}]")


def print_turn_end(engine: QuizEngine):
    word = escape(engine.current_word or "(no word chosen)")
    console.print(f"[bold]Turn over![/bold] The word was [bold cyan]{word}[/bold cyan]\n")


def print_chat(nickname: str, text: str, result: GuessResult, color: str = "cyan"):
    """Print a chat line. Correct guesses are announced, never shown."""
    if result.correct:
        console.print(f"[bold green]✔ {escape(nickname)} guessed the word! (+{result.score})[/bold green]")
        return
    console.print(f"[{color}]{escape(nickname)}[/]: {escape(text)}")


def print_ranking(entries: List[RankingEntry], title: str = "Ranking"):
    """Print players ordered by score."""
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Rank", style="dim", justify="right")
    table.add_column("Player", style="cyan")
    table.add_column("Score", justify="right")

    for i, entry in enumerate(entries, 1):
        table.add_row(str(i), escape(entry.nickname), str(entry.score))

    console.print(table)


def print_game_over(entries: List[RankingEntry]):
    """Print game over screen."""
    winner = entries[0].nickname if entries else "Nobody"
    print_header("GAME OVER", f"{winner} wins!")
    print_ranking(entries, title="Final Standings")


def print_error(message: str):
    """Print error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_info(message: str):
    """Print info message."""
    console.print(f"[cyan]ℹ[/cyan] {message}")


async def get_nickname(default: str = "Player") -> str:
    """Ask for a nickname."""
    name = await questionary.text("Enter your nickname:", default=default).ask_async()
    return (name or "").strip() or default


async def select_word(candidates: List[str]) -> Optional[str]:
    """Let the drawer pick one of the word candidates."""
    if not candidates:
        return None
    return await questionary.select(
        "Choose a word to draw:",
        choices=candidates,
        use_indicator=True,
        use_shortcuts=False,
    ).ask_async()


async def get_chat_line() -> Optional[str]:
    """Read one chat line or command. Returns None on Ctrl-C / EOF."""
    return await questionary.text("", qmark=">").ask_async()
