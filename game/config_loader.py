"""Configuration loader for game settings."""
import json
import logging
import os
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "config")


class ConfigLoader:
    """Loads and provides read-only access to game configuration.

    Missing or malformed files are reported and treated as empty, so every
    lookup falls back to the defaults passed by the caller.
    """

    def __init__(self, config_dir: str = DEFAULT_CONFIG_DIR):
        self.config_dir = config_dir
        self._load_all_configs()

    def _load_all_configs(self):
        """Load all configuration files."""
        self.game_settings = self._load_json("game_settings.json")
        self.words_config = self._load_json("words.json")
        self.profiles_config = self._load_json("profiles.json")

    def _load_json(self, filename: str) -> Dict[str, Any]:
        """Load a JSON configuration file."""
        filepath = os.path.join(self.config_dir, filename)
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.warning("Config file %s not found. Using defaults.", filename)
            return {}
        except json.JSONDecodeError as e:
            logger.warning("Error parsing %s: %s. Using defaults.", filename, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Config file %s is not a JSON object. Using defaults.", filename)
            return {}
        return data

    def get(self, *keys, default=None):
        """Get a nested game setting, e.g. get("game", "round_time", default=180)."""
        value = self.game_settings
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def get_words(self, language: str) -> List[str]:
        """Get the word bank for a language."""
        return list(self.words_config.get(language, []))

    def get_avatars(self) -> List[str]:
        """Get the avatar pool."""
        return list(self.profiles_config.get('avatars', []))

    def get_colors(self) -> List[str]:
        """Get the profile color pool."""
        return list(self.profiles_config.get('colors', []))


# Default configuration, read from the repository's config/ directory
config = ConfigLoader()
