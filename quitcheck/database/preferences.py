# database/preferences.py

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from quitcheck.core.database import StorageError

logger = logging.getLogger(__name__)

FIRST_LAUNCH_KEY = "first_launch"


class PreferencesStore:
    """Small key-value file next to the record store. Without a path it lives in memory."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self._memory: Dict[str, Any] = {}
        self._lock = threading.RLock()

    def load(self) -> Dict[str, Any]:
        with self._lock:
            if self.path is None:
                return dict(self._memory)
            if not self.path.exists():
                return {}
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    return json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise StorageError(f"Failed to read preferences {self.path}: {e}") from e

    def save(self, data: Dict[str, Any]) -> None:
        with self._lock:
            if self.path is None:
                self._memory = dict(data)
                return
            try:
                self.path.parent.mkdir(exist_ok=True, parents=True)
                with open(self.path, "w", encoding="utf-8") as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
            except OSError as e:
                raise StorageError(f"Failed to write preferences {self.path}: {e}") from e

    def update(self, update: Dict[str, Any]) -> None:
        with self._lock:
            data = self.load()
            data.update(update)
            self.save(data)

    def is_first_launch(self) -> bool:
        """Unreadable preferences count as a first launch"""
        try:
            return bool(self.load().get(FIRST_LAUNCH_KEY, True))
        except StorageError as e:
            logger.error(f"❌ {e}; falling back to first launch")
            return True

    def set_first_launch(self, value: bool) -> None:
        self.update({FIRST_LAUNCH_KEY: value})
