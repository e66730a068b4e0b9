"""Player records and profile assignment."""
import random
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from game.config_loader import ConfigLoader, config

DEFAULT_AVATARS = ["🐶", "🐱", "🐭", "🐹", "🐰", "🦊", "🐻", "🐼", "🐨", "🐯", "🦁", "🐮"]
DEFAULT_COLORS = [
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#FFA07A", "#98D8C8", "#F7DC6F",
    "#BB8FCE", "#85C1E2", "#F8B739", "#52B788", "#E76F51", "#2A9D8F",
]


@dataclass(frozen=True)
class Profile:
    """Avatar and color shown next to a player's name."""
    avatar: str
    color: str


@dataclass(eq=False)
class Player:
    """A participant in the quiz."""

    peer_id: str
    nickname: str
    profile: Profile
    score: int = 0
    has_guessed: bool = False

    def __hash__(self):
        return hash(self.peer_id)

    def __eq__(self, other):
        if isinstance(other, Player):
            return self.peer_id == other.peer_id
        return False

    def add_points(self, points: int) -> None:
        self.score += points


@dataclass
class ProfilePool:
    """Fixed avatar and color pools that profiles are drawn from."""

    avatars: List[str] = field(default_factory=lambda: list(DEFAULT_AVATARS))
    colors: List[str] = field(default_factory=lambda: list(DEFAULT_COLORS))

    @classmethod
    def from_config(cls, loader: Optional[ConfigLoader] = None) -> "ProfilePool":
        loader = loader or config
        return cls(
            avatars=loader.get_avatars() or list(DEFAULT_AVATARS),
            colors=loader.get_colors() or list(DEFAULT_COLORS),
        )

    def generate(self, players: Iterable[Player]) -> Profile:
        """Draw a profile that no current player uses, where possible.

        Each pool is drawn from without replacement. Once a pool is used up
        the pick falls back to the whole pool and duplicates are accepted.
        """
        in_use = [p.profile for p in players]
        return Profile(
            avatar=_pick_unused(self.avatars, {p.avatar for p in in_use}),
            color=_pick_unused(self.colors, {p.color for p in in_use}),
        )


def _pick_unused(pool: List[str], used: set) -> str:
    available = [item for item in pool if item not in used]
    return random.choice(available or pool)
