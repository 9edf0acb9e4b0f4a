"""Key-value storage in a local JSON file."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from carbcal.services.logs import KeyValueStorage

logger = logging.getLogger(__name__)


@dataclass
class JsonFileStorage(KeyValueStorage):
    """Stores all keys in one JSON object on disk."""

    path: Path

    def get(self, key: str) -> str | None:
        """Return the value for ``key`` if the file holds one."""
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        """Write ``value`` under ``key``, replacing the file atomically."""
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Ignoring unreadable storage file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning(
                "Ignoring storage file %s: expected a JSON object, got %s",
                self.path,
                type(data).__name__,
            )
            return {}
        return data
