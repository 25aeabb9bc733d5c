"""JSON file implementation of the key-value store."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from calorie_logger.services.store import KeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class FileKeyValueStore(KeyValueStore):
    """Key-value store kept as a single JSON document on disk."""

    path: Path

    @classmethod
    def create(cls, path: str) -> "FileKeyValueStore":
        """Create a store backed by the given file path."""
        return cls(path=Path(path))

    def get(self, key: str) -> str | None:
        """Return the stored text for a key."""
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        """Store text under a key and flush the document."""
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        """Delete a key and flush the document."""
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)

    def _read_all(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            logger.warning("Store file %s is unreadable, starting empty", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)
