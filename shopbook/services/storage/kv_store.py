"""
Key-Value Store Implementations

DESIGN DECISION: The books live in a plain key-value store, the way the
shop's browser app kept them in local storage: one key per collection,
one JSON document per key, every save a whole-document overwrite.

Two implementations:
- JsonFileKeyValueStore: one <key>.json file per key in a data directory.
  Writes go to a temporary file first and are swapped in with os.replace,
  so a crash mid-write leaves the previous document intact.
- InMemoryKeyValueStore: a dict, for tests and throwaway sessions.

Both enforce an optional per-item size limit, mirroring the quota a
browser puts on local storage.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from shopbook.config import StorageSettings, get_settings
from shopbook.services.storage.interface import (
    KeyValueStore,
    StorageQuotaExceededError,
    StorageUnavailableError,
)


_VALID_KEY = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def _check_key(key: str) -> str:
    if not _VALID_KEY.match(key):
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


def _check_quota(key: str, value: str, max_item_bytes: Optional[int]) -> None:
    if max_item_bytes is None:
        return
    size = len(value.encode("utf-8"))
    if size > max_item_bytes:
        raise StorageQuotaExceededError(
            f"Value for {key} is {size} bytes, quota is {max_item_bytes} bytes"
        )


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store. Nothing survives the process."""

    def __init__(
        self,
        initial: Optional[dict[str, str]] = None,
        max_item_bytes: Optional[int] = None,
    ):
        self._items: dict[str, str] = dict(initial or {})
        self._max_item_bytes = max_item_bytes

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(_check_key(key))

    def set_item(self, key: str, value: str) -> None:
        _check_key(key)
        _check_quota(key, value, self._max_item_bytes)
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(_check_key(key), None)

    def keys(self) -> list[str]:
        return sorted(self._items)


class JsonFileKeyValueStore(KeyValueStore):
    """
    Directory-backed store.

    Each key is a file named '<key>.json' under the data directory.
    The directory is created on first write.
    """

    SUFFIX = ".json"

    def __init__(
        self,
        directory: Path,
        max_item_bytes: Optional[int] = None,
    ):
        self._directory = Path(directory)
        self._max_item_bytes = max_item_bytes

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        return self._directory / f"{_check_key(key)}{self.SUFFIX}"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageUnavailableError(f"Could not read {path}: {e}")

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        _check_quota(key, value, self._max_item_bytes)

        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{key}.",
                suffix=".tmp",
                dir=self._directory,
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageUnavailableError(f"Could not write {path}: {e}")

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageUnavailableError(f"Could not remove {path}: {e}")

    def keys(self) -> list[str]:
        if not self._directory.is_dir():
            return []
        try:
            return sorted(
                p.name[: -len(self.SUFFIX)]
                for p in self._directory.iterdir()
                if p.is_file() and p.name.endswith(self.SUFFIX)
            )
        except OSError as e:
            raise StorageUnavailableError(f"Could not list {self._directory}: {e}")


def create_key_value_store(
    settings: Optional[StorageSettings] = None,
) -> KeyValueStore:
    """Build the store selected by configuration."""
    settings = settings or get_settings().storage

    if settings.backend == "memory":
        return InMemoryKeyValueStore(max_item_bytes=settings.max_item_bytes)

    return JsonFileKeyValueStore(
        directory=settings.data_dir,
        max_item_bytes=settings.max_item_bytes,
    )
