"""Shared test fixtures for sketch quiz tests."""
import asyncio
import json
import random
from io import StringIO
from typing import Dict, List, Optional

import pytest
from rich.console import Console

from game.config_loader import ConfigLoader
from game.engine import QuizEngine
from session.relay import SessionRelay


@pytest.fixture(autouse=True)
def deterministic_random():
    """Seed random for reproducible tests."""
    random.seed(42)
    yield
    random.seed()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create temporary config directory with test JSON files."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    game_settings = {
        "game": {
            "round_time": 60,
            "total_rounds": 2,
            "hint_thresholds": [10, 20],
            "max_players": 4,
            "min_players": 2,
            "turn_end_delay": 0.01,
            "word_choices": 3,
            "word_language": "en"
        },
        "network": {
            "port": 0,
            "batch_delay_ms": 5
        }
    }
    words = {
        "en": ["apple", "banana", "cherry", "dragon", "engine"],
        "ko": ["사과", "바나나"]
    }
    profiles = {
        "avatars": ["🐶", "🐱", "🐭"],
        "colors": ["#FF0000", "#00FF00", "#0000FF"]
    }

    (config_dir / "game_settings.json").write_text(json.dumps(game_settings, indent=2), encoding="utf-8")
    (config_dir / "words.json").write_text(json.dumps(words, ensure_ascii=False), encoding="utf-8")
    (config_dir / "profiles.json").write_text(json.dumps(profiles, ensure_ascii=False), encoding="utf-8")

    yield config_dir


@pytest.fixture
def test_config(temp_config_dir):
    """ConfigLoader reading the temporary config directory."""
    return ConfigLoader(str(temp_config_dir))


@pytest.fixture
def make_engine(test_config):
    """Factory fixture for engines with fast timers."""
    def _create(**options) -> QuizEngine:
        options.setdefault("tick_interval", 0.01)
        options.setdefault("turn_end_delay", 0.01)
        return QuizEngine(loader=test_config, **options)

    return _create


@pytest.fixture
def mock_console(monkeypatch):
    """Mock Rich Console for UI tests."""
    output = StringIO()
    console = Console(file=output, force_terminal=False, width=100, legacy_windows=False)

    # Replace global console in ui module
    import client.ui as ui_module
    monkeypatch.setattr(ui_module, 'console', console)

    return console, output


# --- In-memory transport ---

class MemoryChannel:
    """One end of an in-memory channel pair."""

    def __init__(self):
        self.inbox: asyncio.Queue = asyncio.Queue()
        self.peer: Optional["MemoryChannel"] = None
        self.closed = False
        self.sent: List[str] = []

    @classmethod
    def pair(cls):
        a, b = cls(), cls()
        a.peer, b.peer = b, a
        return a, b

    async def send(self, frame: str) -> None:
        if self.closed or self.peer is None or self.peer.closed:
            raise ConnectionError("channel closed")
        self.sent.append(frame)
        self.peer.inbox.put_nowait(frame)

    async def recv(self) -> Optional[str]:
        if self.closed and self.inbox.empty():
            return None
        return await self.inbox.get()

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.inbox.put_nowait(None)
        if self.peer is not None and not self.peer.closed:
            self.peer.inbox.put_nowait(None)


class MemoryTransport:
    """Transport whose addresses live in a shared MemoryNetwork."""

    def __init__(self, network: "MemoryNetwork", name: str):
        self.network = network
        self.name = name
        self.closed = False
        self._on_channel = None
        self._server_channels: List[MemoryChannel] = []
        self._tasks: List[asyncio.Task] = []

    async def listen(self, on_channel) -> str:
        if self.network.fail_listen:
            raise OSError("address already in use")
        address = f"mem://{self.name}"
        self._on_channel = on_channel
        self.network.listeners[address] = self
        return address

    async def connect(self, address: str) -> MemoryChannel:
        target = self.network.listeners.get(address)
        if target is None or target.closed:
            raise OSError(f"no listener at {address}")
        client_end, server_end = MemoryChannel.pair()
        target._server_channels.append(server_end)
        target._tasks.append(asyncio.create_task(target._on_channel(server_end)))
        return client_end

    async def close(self) -> None:
        self.closed = True
        self.network.listeners = {
            addr: t for addr, t in self.network.listeners.items() if t is not self
        }
        for channel in self._server_channels:
            await channel.close()


class MemoryNetwork:
    """Registry of listening memory transports."""

    def __init__(self):
        self.listeners: Dict[str, MemoryTransport] = {}
        self.fail_listen = False

    def transport(self, name: str) -> MemoryTransport:
        return MemoryTransport(self, name)


@pytest.fixture
def memory_network():
    return MemoryNetwork()


@pytest.fixture
def make_relay(memory_network):
    """Factory fixture for relays wired to the shared in-memory network."""
    def _create(name: str, batch_delay: float = 0.005) -> SessionRelay:
        return SessionRelay(
            transport=memory_network.transport(name),
            peer_id=name,
            batch_delay=batch_delay,
        )

    return _create


async def _wait_until(predicate, timeout: float = 2.0, interval: float = 0.005):
    """Poll predicate until it is truthy or fail after timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(interval)


@pytest.fixture
def wait_until():
    """Async helper that waits for a condition."""
    return _wait_until


@pytest.fixture
def channel_pair():
    """Two connected in-memory channel ends."""
    return MemoryChannel.pair
