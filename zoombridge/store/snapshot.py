"""Single-slot snapshot store: the latest webhook event and the latest OAuth token."""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from zoombridge.config import StoreConfig
from zoombridge.utils.logging import get_logger

log = get_logger(__name__)

LAST_WEBHOOK_EVENT = "last_webhook_event"
LAST_OAUTH_TOKEN = "last_oauth_token"

SNAPSHOT_KEYS = (LAST_WEBHOOK_EVENT, LAST_OAUTH_TOKEN)


def _check_key(key: str) -> None:
    if key not in SNAPSHOT_KEYS:
        raise KeyError(f"Unknown snapshot key: {key}")


class SnapshotStore(ABC):
    """Each key holds only the most recent successful write.

    ``read`` returns the stored JSON value, or the raw text if what was
    stored is not valid JSON, or ``None`` when nothing has been written.
    """

    @abstractmethod
    async def read(self, key: str) -> Any | None: ...

    @abstractmethod
    async def write(self, key: str, value: Any) -> None: ...


class MemorySnapshotStore(SnapshotStore):
    def __init__(self) -> None:
        self._slots: dict[str, str] = {}

    async def read(self, key: str) -> Any | None:
        _check_key(key)
        text = self._slots.get(key)
        if text is None:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text

    async def write(self, key: str, value: Any) -> None:
        _check_key(key)
        self._slots[key] = json.dumps(value, indent=2, ensure_ascii=False)


class FileSnapshotStore(SnapshotStore):
    """One pretty-printed JSON file per key, overwritten on every write.

    No locking: concurrent writers race and the last one wins.
    """

    def __init__(self, data_dir: Path, filenames: dict[str, str]) -> None:
        self._data_dir = data_dir
        for key in filenames:
            _check_key(key)
        self._filenames = filenames

    def path_for(self, key: str) -> Path:
        _check_key(key)
        return self._data_dir / self._filenames[key]

    async def read(self, key: str) -> Any | None:
        path = self.path_for(key)
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            log.warning("snapshot_read_failed", key=key, path=str(path), error=str(e))
            return None

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            log.warning("snapshot_not_json", key=key, path=str(path))
            return text

    async def write(self, key: str, value: Any) -> None:
        """Overwrite the snapshot for ``key``. Raises ``OSError`` on failure."""
        path = self.path_for(key)
        text = json.dumps(value, indent=2, ensure_ascii=False)
        await asyncio.to_thread(self._write_text, path, text)
        log.debug("snapshot_written", key=key, path=str(path), chars=len(text))

    @staticmethod
    def _write_text(path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)


def create_store(config: StoreConfig) -> SnapshotStore:
    """Factory to create the configured snapshot backend."""
    if config.backend == "memory":
        return MemorySnapshotStore()
    return FileSnapshotStore(
        config.get_data_dir(),
        {
            LAST_WEBHOOK_EVENT: config.webhook_file,
            LAST_OAUTH_TOKEN: config.oauth_token_file,
        },
    )
