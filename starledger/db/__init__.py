"""
Storage Layer for the Star Ledger

Provides:
- RecordStore abstraction (append lock, snapshots)
- InMemoryRecordStore (volatile, rebuilt empty on every start)
"""

from .store import (
    RecordStore,
    InMemoryRecordStore,
    RecordStoreError,
    ChainHead,
    AppendContext,
)

__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "RecordStoreError",
    "ChainHead",
    "AppendContext",
]
