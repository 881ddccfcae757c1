"""
Key/value stores that published snapshots are written to.

Subscribers are notified with (key, record) whenever a value is set and
with (key, None) when one is removed.
"""

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class MemoryStore:
    def __init__(self):
        self._values = {}
        self._subscribers = []

    def subscribe(self, callback):
        self._subscribers.append(callback)

    def get_value(self, key, default=None):
        return self._values.get(key, default)

    def keys(self):
        return list(self._values)

    def set_value(self, key, record):
        self._values[key] = dict(record)
        for callback in list(self._subscribers):
            callback(key, record)

    def remove_value(self, key):
        if self._values.pop(key, None) is None:
            return
        for callback in list(self._subscribers):
            callback(key, None)


class JsonFileStore(MemoryStore):
    """
    Store persisted to a shared JSON file so other processes can read it.

    The file is replaced atomically on every change.
    """

    def __init__(self, path):
        super().__init__()
        self.path = Path(path)
        self._values = load_state(self.path)

    def set_value(self, key, record):
        super().set_value(key, record)
        self._write()

    def remove_value(self, key):
        super().remove_value(key)
        self._write()

    def _write(self):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_file = str(self.path) + ".tmp"
            with open(tmp_file, "w") as f:
                json.dump(self._values, f, indent=2, sort_keys=True)
            os.rename(tmp_file, self.path)
        except OSError as e:
            logger.error("Error writing power source state to %s: %s", self.path, e)


def load_state(path) -> dict:
    """Read a state file written by JsonFileStore; empty if missing or corrupt."""
    path = Path(path)
    if not path.exists():
        return {}
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Could not read power source state %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}
