"""
Record Store Abstraction

This module defines the RecordStore interface and its in-memory
implementation.

The RecordStore is responsible for:
- The ordered backing sequence of records
- Serializing appends (one writer at a time)
- Point-in-time snapshots for readers

The LedgerService retains responsibility for:
- Building records (timestamps, digests)
- The ownership gate

TRANSACTION CONTRACT:
All append operations MUST use the begin_append() context manager:

    with store.begin_append() as ctx:
        position = ctx.head.next_position
        previous_digest = ctx.head.last_digest
        # ... build the record ...
        ctx.commit(record)

The head read and the commit happen under the same lock, so two
concurrent appends can never link to the same tail.

The in-memory store is volatile: every restart begins with an empty
sequence. A durable implementation only has to honour this interface.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock
from typing import Generator, Optional

from ..core.errors import ChainIntegrityError
from ..core.hasher import Hasher
from ..schemas import Record


# ============================================================
# EXCEPTIONS
# ============================================================

class RecordStoreError(Exception):
    """Base exception for record store errors."""
    pass


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class ChainHead:
    """
    Current state of the chain head.

    This is what gets locked during atomic append.
    """
    last_position: int  # -1 means empty ledger
    last_digest: Optional[str]  # None means empty ledger

    @property
    def next_position(self) -> int:
        """Get the next position to assign."""
        return self.last_position + 1

    @property
    def is_empty(self) -> bool:
        """Check if the ledger is empty."""
        return self.last_position == -1

    @property
    def height(self) -> int:
        """Number of records behind this head."""
        return self.last_position + 1


EMPTY_HEAD = ChainHead(last_position=-1, last_digest=None)


@dataclass
class AppendContext:
    """
    Transaction context for one atomic append.

    Holds the head that was read under the lock. commit() may be
    called at most once.
    """
    head: ChainHead
    _store: "RecordStore"
    _committed: bool = field(default=False, init=False)

    @property
    def committed(self) -> bool:
        return self._committed

    def commit(self, record: Record) -> Record:
        """
        Push the record onto the chain.

        Raises:
            ChainIntegrityError: If the record does not extend this head
            RecordStoreError: If the context was already committed
        """
        if self._committed:
            raise RecordStoreError("Transaction already committed")

        _check_extends(self.head, record)
        result = self._store._do_commit(self, record)
        self._committed = True
        return result


def _check_extends(head: ChainHead, record: Record) -> None:
    """Verify that record is the correct successor of head."""
    if record.position != head.next_position:
        raise ChainIntegrityError(
            f"Position mismatch: expected {head.next_position}, "
            f"got {record.position}"
        )

    if head.is_empty:
        if record.previous_digest is not None:
            raise ChainIntegrityError(
                "Genesis record must have previous_digest=None"
            )
    elif record.previous_digest != head.last_digest:
        raise ChainIntegrityError(
            f"Previous digest mismatch: expected {head.last_digest}, "
            f"got {record.previous_digest}"
        )

    computed = Hasher.digest_record(
        record.position, record.timestamp, record.previous_digest, record.payload
    )
    if not Hasher.verify_digest(computed, record.digest):
        raise ChainIntegrityError(
            f"Digest verification failed: computed {computed[:16]}..., "
            f"claimed {record.digest[:16]}..."
        )


# ============================================================
# ABSTRACT BASE CLASS
# ============================================================

class RecordStore(ABC):
    """
    Abstract base class for record storage.

    Implementations must ensure:
    1. Atomic append: begin_append holds exclusive access until it exits
    2. No gaps and no duplicates in positions
    3. Snapshots never contain a half-appended record
    """

    @contextmanager
    @abstractmethod
    def begin_append(self) -> Generator[AppendContext, None, None]:
        """
        Begin an atomic append operation.

        This context manager:
        1. Acquires exclusive access to the chain head
        2. Yields an AppendContext with the current head
        3. Releases access on exit; nothing is written unless ctx.commit() ran
        """
        pass

    @abstractmethod
    def _do_commit(self, ctx: AppendContext, record: Record) -> Record:
        """Internal: push within the current transaction. Use ctx.commit() instead."""
        pass

    @abstractmethod
    def snapshot(self) -> list[Record]:
        """
        Copy of all records ordered by position.

        The copy is taken atomically with respect to appends.
        """
        pass

    @abstractmethod
    def get_head(self) -> ChainHead:
        """Get current chain head (read-only)."""
        pass

    def count(self) -> int:
        """Get total number of records in the store."""
        return self.get_head().height


# ============================================================
# IN-MEMORY IMPLEMENTATION
# ============================================================

class InMemoryRecordStore(RecordStore):
    """
    In-memory implementation of RecordStore.

    Suitable for:
    - Development
    - Testing
    - Single-instance deployments without persistence requirements

    NOT suitable for:
    - Anything that must survive a restart
    """

    def __init__(self):
        self._records: list[Record] = []
        self._head = EMPTY_HEAD
        self._lock = Lock()

    @contextmanager
    def begin_append(self) -> Generator[AppendContext, None, None]:
        """Begin atomic append with thread lock."""
        with self._lock:
            yield AppendContext(head=self._head, _store=self)

    def _do_commit(self, ctx: AppendContext, record: Record) -> Record:
        """Commit record to the in-memory sequence. Caller holds the lock."""
        if ctx.head is not self._head:
            raise RecordStoreError("_do_commit called outside the current transaction")

        # The only mutation point of the backing sequence
        self._records.append(record)
        self._head = ChainHead(
            last_position=record.position,
            last_digest=record.digest,
        )
        return record

    def snapshot(self) -> list[Record]:
        """Return a copy of all records, ordered by position."""
        with self._lock:
            return list(self._records)

    def get_head(self) -> ChainHead:
        """Get current head (ChainHead is immutable, no copy needed)."""
        return self._head
