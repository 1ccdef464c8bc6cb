"""Last-value snapshot storage."""

from .snapshot import (
    LAST_OAUTH_TOKEN,
    LAST_WEBHOOK_EVENT,
    FileSnapshotStore,
    MemorySnapshotStore,
    SnapshotStore,
    create_store,
)

__all__ = [
    "LAST_OAUTH_TOKEN",
    "LAST_WEBHOOK_EVENT",
    "FileSnapshotStore",
    "MemorySnapshotStore",
    "SnapshotStore",
    "create_store",
]
