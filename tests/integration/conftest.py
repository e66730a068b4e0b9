"""Shared fixtures and utilities for integration tests."""

import pytest

from client.context import GameContext
from client.controller import GameController
from session.relay import SessionRelay
from session.transport import WebSocketTransport


def loopback_transport() -> WebSocketTransport:
    """Websocket transport on 127.0.0.1 with an OS-assigned port."""
    return WebSocketTransport(host="127.0.0.1", port=0)


@pytest.fixture
def ws_relay():
    """Factory fixture for relays talking real websockets on loopback."""
    def _create(peer_id=None, batch_delay=0.005) -> SessionRelay:
        return SessionRelay(transport=loopback_transport(), peer_id=peer_id, batch_delay=batch_delay)

    return _create


@pytest.fixture
def ws_controller(test_config):
    """Factory fixture for full game controllers over loopback websockets."""
    def _create(nickname: str) -> GameController:
        context = GameContext.create(
            nickname, transport=loopback_transport(), loader=test_config, tick_interval=5.0,
        )
        return GameController(context)

    return _create
