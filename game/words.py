"""Word bank and candidate selection."""
import random
from typing import List, Optional, Sequence

from game.config_loader import ConfigLoader, config

DEFAULT_WORDS = [
    "apple", "banana", "car", "airplane", "computer",
    "book", "pencil", "chair", "table", "house",
    "tree", "flower", "sun", "moon", "star",
    "dog", "cat", "fish", "bird", "rabbit",
]


def load_word_bank(language: str = "en", loader: Optional[ConfigLoader] = None) -> List[str]:
    """Load the configured word bank, falling back to the built-in words."""
    words = (loader or config).get_words(language)
    return words or list(DEFAULT_WORDS)


def pick_words(words: Sequence[str], count: int = 3) -> List[str]:
    """Pick up to count distinct words at random."""
    unique = list(dict.fromkeys(w.strip() for w in words if w and w.strip()))
    return random.sample(unique, min(count, len(unique)))
