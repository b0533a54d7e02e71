"""Storage backends for BanForge."""

from .base import AuditStore, PlayerRecord, PlayerStore, SnapshotRecord, SnapshotStore
from .documents import document_to_record, record_to_document
from .memory import InMemoryAuditStore, InMemoryPlayerStore, InMemorySnapshotStore
from .sqlalchemy import AsyncSQLAlchemyStorage

__all__ = [
    "AuditStore",
    "PlayerRecord",
    "PlayerStore",
    "SnapshotRecord",
    "SnapshotStore",
    "document_to_record",
    "record_to_document",
    "InMemoryAuditStore",
    "InMemoryPlayerStore",
    "InMemorySnapshotStore",
    "AsyncSQLAlchemyStorage",
]
