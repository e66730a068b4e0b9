"""
SKETCH QUIZ - a peer-to-peer draw and guess game

One player hosts a room and shares its address; everyone else joins it.
Players take turns drawing a secret word while the others race to guess it
in chat.
"""
import sys
import io

# Fix Windows console encoding for emojis
if sys.platform == 'win32':
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8')

import argparse
import asyncio
from typing import List, Optional

from client import ui
from client.context import GameContext
from client.main import GameClient, setup_logging
from game.config_loader import config
from session.rooms import room_id_from_url
from session.transport import WebSocketTransport
from version import VERSION


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SKETCH QUIZ - peer-to-peer draw and guess")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--host-game", action="store_true", help="Create a room (default)")
    mode.add_argument("--join", metavar="ROOM_OR_URL", help="Join a room by id or share link")
    parser.add_argument("--bind", default="0.0.0.0", help="Address to listen on when hosting")
    parser.add_argument(
        "--port", type=int, default=config.get("network", "port", default=8765),
        help="Port to listen on when hosting (0 picks a free one)",
    )
    parser.add_argument("--advertise", help="Host name to put in the room id")
    parser.add_argument("--nickname", help="Your display name")
    parser.add_argument("--share-base", help="Page URL to build share links from")
    parser.add_argument("--verbose", action="store_true", help="Show debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


async def run(args: argparse.Namespace) -> int:
    room_id: Optional[str] = None
    if args.join:
        room_id = room_id_from_url(args.join)
        if room_id is None:
            ui.print_error(f"Could not find a room in '{args.join}'")
            return 2

    nickname = args.nickname or await ui.get_nickname()
    transport = WebSocketTransport(host=args.bind, port=args.port, advertise_host=args.advertise)
    context = GameContext.create(nickname, transport=transport)

    client = GameClient(context, share_base=args.share_base)
    return await client.run(room_id)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for SKETCH QUIZ."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        ui.console.print("\n\n[yellow]Game interrupted. Thanks for playing![/yellow]\n")
        return 0


if __name__ == "__main__":
    sys.exit(main())
