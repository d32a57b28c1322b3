"""Runtime preferences with an in-memory mode and a JSON-file mode.

In FILE mode values are cached in memory and written to the prefs file on
save(). If the file cannot be read or written the store falls back to
memory-only (once, with a warning) so callers never see the failure.
"""

from __future__ import annotations

import enum
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union


logger = logging.getLogger(__name__)


class StorageMode(enum.Enum):
    MEMORY_ONLY = "memory"
    FILE = "file"


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


class RuntimePrefs:
    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        mode: Optional[StorageMode] = None,
        allow_fallback: bool = True,
    ) -> None:
        self.path = Path(path) if path is not None else None
        if mode is None:
            mode = StorageMode.FILE if self.path is not None else StorageMode.MEMORY_ONLY
        self.mode = mode
        self.allow_fallback = allow_fallback
        self._store: Dict[str, Any] = {}
        self._persisted: Optional[Dict[str, Any]] = None
        self._logged_fallback = False

    def configure(self, mode: StorageMode, allow_fallback: bool = True) -> None:
        self.mode = mode
        self.allow_fallback = allow_fallback
        if mode is StorageMode.MEMORY_ONLY:
            self._logged_fallback = False

    @property
    def _file_enabled(self) -> bool:
        return self.mode is StorageMode.FILE and self.path is not None

    def _handle_failure(self, exc: Exception, operation: str, key: Optional[str] = None) -> None:
        if not self.allow_fallback:
            logger.warning("RuntimePrefs: %s failed and fallback is disabled (key=%s): %s", operation, key, exc)
            return
        if not self._logged_fallback:
            logger.warning("RuntimePrefs: %s failed (key=%s), falling back to memory: %s", operation, key, exc)
            self._logged_fallback = True
        self.mode = StorageMode.MEMORY_ONLY

    def _file_values(self, operation: str, key: Optional[str] = None) -> Optional[Dict[str, Any]]:
        if not self._file_enabled:
            return None
        if self._persisted is None:
            try:
                if self.path.exists():
                    data = json.loads(self.path.read_text(encoding="utf-8"))
                    if not isinstance(data, dict):
                        raise ValueError(f"{self.path} does not hold a JSON object")
                else:
                    data = {}
            except (OSError, ValueError) as exc:
                self._handle_failure(exc, operation, key)
                return None
            self._persisted = data
        return self._persisted

    def _read(self, key: str, operation: str) -> Any:
        if key in self._store:
            return self._store[key]
        values = self._file_values(operation, key)
        if values is not None and key in values:
            self._store[key] = values[key]
            return values[key]
        return None

    def _write(self, key: str, value: Any, operation: str) -> None:
        self._store[key] = value
        values = self._file_values(operation, key)
        if values is not None:
            values[key] = value

    def get_int(self, key: str, default: int = 0) -> int:
        value = _as_int(self._read(key, "get_int"))
        return default if value is None else value

    def set_int(self, key: str, value: int) -> None:
        self._write(key, int(value), "set_int")

    def get_float(self, key: str, default: float = 0.0) -> float:
        value = _as_float(self._read(key, "get_float"))
        return default if value is None else value

    def set_float(self, key: str, value: float) -> None:
        self._write(key, float(value), "set_float")

    def get_string(self, key: str, default: str = "") -> str:
        value = self._read(key, "get_string")
        return default if value is None else str(value)

    def set_string(self, key: str, value: Optional[str]) -> None:
        self._write(key, value or "", "set_string")

    def has_key(self, key: str) -> bool:
        if key in self._store:
            return True
        values = self._file_values("has_key", key)
        return values is not None and key in values

    def delete_key(self, key: str) -> None:
        if not key:
            return
        self._store.pop(key, None)
        values = self._file_values("delete_key", key)
        if values is not None:
            values.pop(key, None)

    def delete_all(self) -> None:
        self._store.clear()
        if self._file_enabled:
            self._persisted = {}

    def save(self) -> None:
        values = self._file_values("save")
        if values is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(values, indent=2, sort_keys=True) + "\n", encoding="utf-8")
        except OSError as exc:
            self._handle_failure(exc, "save")
