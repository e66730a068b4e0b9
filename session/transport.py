"""Channel transport: "open a bidirectional message channel to a named peer".

The relay never touches websockets directly. It talks to a transport that can
listen for incoming channels and connect to an address, and to channels that
can send text frames, receive them, and close. WebSocketTransport is the
production implementation; tests plug in an in-memory one.
"""

import logging
from typing import Awaitable, Callable, Optional, Protocol

import websockets
from websockets.exceptions import ConnectionClosed

from utils.net import get_lan_address

# Suppress websockets library errors from TCP probes that never complete the
# WebSocket handshake.
logging.getLogger("websockets").setLevel(logging.CRITICAL)

logger = logging.getLogger(__name__)


class Channel(Protocol):
    """A bidirectional, ordered stream of text frames."""

    async def send(self, frame: str) -> None:
        """Send one frame. Raises ConnectionError once the channel is closed."""

    async def recv(self) -> Optional[str]:
        """Receive one frame, or None once the channel is closed."""

    async def close(self) -> None:
        """Close the channel. Safe to call more than once."""


ChannelHandler = Callable[[Channel], Awaitable[None]]


class Transport(Protocol):
    """Allocates a local endpoint and opens channels to remote ones."""

    async def listen(self, on_channel: ChannelHandler) -> str:
        """Start accepting channels. Returns the endpoint address."""

    async def connect(self, address: str) -> Channel:
        """Open a channel to the endpoint at address."""

    async def close(self) -> None:
        """Release the local endpoint."""


class WebSocketChannel:
    """Adapts a websockets connection to the Channel interface."""

    def __init__(self, websocket):
        self._ws = websocket

    async def send(self, frame: str) -> None:
        try:
            await self._ws.send(frame)
        except ConnectionClosed as e:
            raise ConnectionError(f"Channel closed: {e}") from e

    async def recv(self) -> Optional[str]:
        try:
            frame = await self._ws.recv()
        except ConnectionClosed:
            return None
        if isinstance(frame, bytes):
            frame = frame.decode("utf-8", errors="replace")
        return frame

    async def close(self) -> None:
        await self._ws.close()


class WebSocketTransport:
    """Transport over websockets.

    The listening address doubles as the room id, so it must be reachable by
    the other participants: when bound to 0.0.0.0 the LAN address of this
    machine is advertised instead.
    """

    def __init__(self, host: str = "0.0.0.0", port: int = 8765, advertise_host: Optional[str] = None):
        self.host = host
        self.port = port
        self.advertise_host = advertise_host
        self._server = None

    async def listen(self, on_channel: ChannelHandler) -> str:
        async def handle_connection(websocket):
            await on_channel(WebSocketChannel(websocket))

        self._server = await websockets.serve(
            handle_connection, self.host, self.port,
            reuse_address=True
        )

        # Port 0 means "any free port"; report the one we actually got.
        bound_port = next(iter(self._server.sockets)).getsockname()[1]
        advertise = self.advertise_host
        if not advertise:
            advertise = get_lan_address() if self.host in ("0.0.0.0", "") else self.host
        address = f"ws://{advertise}:{bound_port}"
        logger.info("Listening on %s:%s (advertised as %s)", self.host, bound_port, address)
        return address

    async def connect(self, address: str) -> Channel:
        websocket = await websockets.connect(address)
        return WebSocketChannel(websocket)

    async def close(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
