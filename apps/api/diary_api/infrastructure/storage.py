from __future__ import annotations

import json
import logging
from pathlib import Path

from diary_api.domain.exceptions import StorageError
from diary_api.util import atomic_write_json

logger = logging.getLogger("diary.storage")


class FileStorage:
    """String key/value storage kept in a single JSON object file.

    Values are opaque strings, the same contract as a browser's localStorage.
    """

    def __init__(self, data_dir: Path, filename: str = "storage.json") -> None:
        self.data_dir = data_dir
        self.path = data_dir / filename

    def _load_mapping(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError, RecursionError) as e:
            raise StorageError(f"storage_unreadable: {self.path}") from e
        if not isinstance(data, dict):
            raise StorageError(f"storage_not_mapping: {self.path}")
        # Entries that are not strings are kept so writes carry them along.
        return {str(k): v for k, v in data.items()}

    def _load_mapping_for_write(self) -> dict[str, object]:
        try:
            return self._load_mapping()
        except StorageError:
            corrupt = self.path.with_name(self.path.name + ".corrupt")
            logger.warning("storage_reset", extra={"path": str(self.path), "moved_to": str(corrupt)})
            try:
                self.path.replace(corrupt)
            except OSError as e:
                raise StorageError(f"storage_unwritable: {self.path}") from e
            return {}

    def _write_mapping(self, mapping: dict[str, object]) -> None:
        try:
            atomic_write_json(self.path, mapping)
        except OSError as e:
            raise StorageError(f"storage_unwritable: {self.path}") from e

    def get_item(self, key: str) -> str | None:
        value = self._load_mapping().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        mapping = self._load_mapping_for_write()
        mapping[key] = value
        self._write_mapping(mapping)

    def remove_item(self, key: str) -> None:
        mapping = self._load_mapping_for_write()
        if key in mapping:
            mapping.pop(key, None)
            self._write_mapping(mapping)
