"""
Persisted user preferences. Only the difficulty level is stored.
"""
from __future__ import annotations

import json
import logging
import time

from .store import BlobStore

SETTINGS_KEY_PREFIX = "tictactoe_settings_"
DIFFICULTY_KEY = f"{SETTINGS_KEY_PREFIX}difficulty"
SETTINGS_VERSION = "1.0.0"

DIFFICULTIES = ("easy", "medium", "hard")
DEFAULT_DIFFICULTY = "medium"


def check_difficulty(difficulty: str) -> str:
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"Unknown difficulty: {difficulty!r}")
    return difficulty


class SettingsStore:
    def __init__(self, blob_store: BlobStore) -> None:
        self.blob_store = blob_store

    def save_difficulty(self, difficulty: str) -> bool:
        check_difficulty(difficulty)
        payload = {
            'version': SETTINGS_VERSION,
            'timestamp': int(time.time() * 1000),
            'difficulty': difficulty,
        }
        try:
            self.blob_store.put(DIFFICULTY_KEY, json.dumps(payload))
        except OSError as e:
            logging.error("Error saving difficulty setting: %s", e)
            return False
        return True

    def load_difficulty(self) -> str:
        """Saved difficulty, or 'medium' when nothing valid is stored."""
        try:
            text = self.blob_store.get(DIFFICULTY_KEY)
            if not text:
                return DEFAULT_DIFFICULTY
            settings = json.loads(text)
        except (OSError, json.JSONDecodeError) as e:
            logging.warning("Error loading difficulty setting: %s", e)
            return DEFAULT_DIFFICULTY
        if isinstance(settings, dict) and settings.get('difficulty') in DIFFICULTIES:
            return settings['difficulty']
        return DEFAULT_DIFFICULTY

    def clear(self) -> None:
        try:
            self.blob_store.delete(DIFFICULTY_KEY)
        except OSError as e:
            logging.error("Error clearing game settings: %s", e)
