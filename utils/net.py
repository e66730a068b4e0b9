"""Network helpers."""

import socket


def get_lan_address() -> str:
    """Best-effort guess of this machine's LAN IPv4 address.

    Connecting a UDP socket sends no packets, it only makes the OS pick the
    outbound interface. Falls back to loopback when there is no route.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.connect(("10.255.255.255", 1))
        return sock.getsockname()[0]
    except OSError:
        return "127.0.0.1"
    finally:
        sock.close()
