"""Shareable room links.

A room id is the host's channel address (e.g. ws://192.168.1.20:8765). It can
be shared on its own or as the `room` query parameter of any page URL.
"""

from typing import Optional
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

ROOM_PARAM = "room"


def room_url(base_url: str, room_id: str) -> str:
    """Build a share link carrying room_id as a query parameter."""
    parts = urlsplit(base_url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode({ROOM_PARAM: room_id}), ""))


def room_id_from_url(url: str) -> Optional[str]:
    """Resolve a share link (or a bare room id) back into a room id."""
    text = (url or "").strip()
    if not text:
        return None

    parts = urlsplit(text)
    if parts.scheme in ("ws", "wss"):
        return text

    values = parse_qs(parts.query).get(ROOM_PARAM)
    if values and values[0].strip():
        return values[0].strip()
    return None
