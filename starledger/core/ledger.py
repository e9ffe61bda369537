"""
Ledger Service - The Heart of the System

An append-only chain of records, each linked to its predecessor.
Nothing is "edited". Records are appended.

The ledger:
- Seeds the genesis record on initialization
- Gates appends behind the ownership verifier
- Builds, hashes and links records
- Answers queries and audits over snapshots

Rules (enforced in code):
- Exactly one genesis record, created before the service is handed out
- Every append needs a VerifiedOwnership
- Empty payloads are rejected before anything is written
- Height is the number of records; positions are zero-based,
  so the tail record sits at position height() - 1

ARCHITECTURE NOTE:
Storage is delegated to a RecordStore.
- LedgerService: record construction, hashing, ownership gate, queries
- RecordStore: append lock, ordering, snapshots

LedgerService reads (position, previous_digest) from the head it gets inside
RecordStore.begin_append(), so head read, hashing and push form one
critical section.
"""

import time
from typing import Any, Optional, TYPE_CHECKING

from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError

from ..config import LedgerConfig
from ..observability import get_logger, get_metrics
from ..schemas import GENESIS_PAYLOAD, Finding, OwnedStar, Record
from . import queries
from .codec import encode_submission
from .errors import EmptyPayload, InvalidPayload, OwnershipError
from .hasher import Hasher
from .ownership import Clock, OwnershipVerifier, VerifiedOwnership, unix_now
from .validator import ChainValidator

if TYPE_CHECKING:
    from ..db.store import AppendContext, RecordStore


logger = get_logger(__name__)


class LedgerService:
    """
    The core ledger service.

    CHAIN INTEGRITY GUARANTEES:
    - Positions are 0, 1, 2, ... with no gaps
    - previous_digest is None ONLY for genesis (position 0)
    - Each digest covers (position, timestamp, previous_digest, payload)
    - Appends are serialized by the store; records are frozen

    CONCURRENCY GUARANTEES:
    - One append in flight at a time
    - Queries and validation read a snapshot copied under the store lock
    - The verifier is shared freely between threads
    """

    def __init__(
        self,
        record_store: Optional["RecordStore"] = None,
        verifier: Optional[OwnershipVerifier] = None,
        config: Optional[LedgerConfig] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize LedgerService and seed the genesis record.

        Args:
            record_store: RecordStore implementation.
                          If None, creates an InMemoryRecordStore.
            verifier: Ownership verifier. If None, one is built from config.
            config: Settings; defaults to LedgerConfig.from_env().
            clock: Source of integer epoch seconds (tests inject a fake).
        """
        # Import here to avoid circular imports
        if record_store is None:
            from ..db.store import InMemoryRecordStore
            record_store = InMemoryRecordStore()

        self._clock = clock or unix_now
        self.config = config or LedgerConfig.from_env()
        self._record_store = record_store
        self._verifier = verifier or OwnershipVerifier.from_config(self.config, clock=self._clock)

        # Blocking, one-time setup before anyone else can see the ledger
        self.initialize()

    @property
    def record_store(self) -> "RecordStore":
        """Get the underlying record store."""
        return self._record_store

    @property
    def verifier(self) -> OwnershipVerifier:
        return self._verifier

    # ================================================================
    # LEDGER STORE
    # ================================================================

    def initialize(self) -> "LedgerService":
        """
        Ensure the genesis record exists.

        Idempotent: the emptiness check and the genesis push happen under
        the append lock, so concurrent or repeated calls create it once.
        """
        with self._record_store.begin_append() as ctx:
            if ctx.head.is_empty:
                genesis = self._commit_locked(ctx, GENESIS_PAYLOAD)
                logger.info(
                    "Genesis record created",
                    digest=genesis.digest,
                    timestamp=genesis.timestamp,
                )
        return self

    def height(self) -> int:
        """Number of records in the ledger (genesis included)."""
        return self._record_store.count()

    def snapshot(self) -> list[Record]:
        """Point-in-time copy of the chain."""
        return self._record_store.snapshot()

    def append(self, payload: bytes, ownership: VerifiedOwnership) -> Record:
        """
        Append a record.

        The caller must have passed the ownership check first; the ledger
        does not call the verifier here.

        All-or-nothing: a rejected payload leaves the chain untouched.

        Raises:
            EmptyPayload: If payload is None or empty
            TypeError: If ownership is not a VerifiedOwnership
        """
        if not isinstance(ownership, VerifiedOwnership):
            raise TypeError(
                "append() requires a VerifiedOwnership from OwnershipVerifier.verify()"
            )
        if not payload:
            raise EmptyPayload("Record payload must not be empty")

        start = time.perf_counter()
        with self._record_store.begin_append() as ctx:
            record = self._commit_locked(ctx, bytes(payload))

        get_metrics().record_append((time.perf_counter() - start) * 1000)
        logger.info(
            "Record appended",
            position=record.position,
            digest=record.digest,
            address=ownership.address,
        )
        return record

    def _commit_locked(self, ctx: "AppendContext", payload: bytes) -> Record:
        """Build the successor of ctx.head and push it. Caller holds the lock."""
        head = ctx.head
        position = head.next_position
        previous_digest = None if head.is_empty else head.last_digest
        timestamp = self._clock()

        record = Record(
            position=position,
            timestamp=timestamp,
            previous_digest=previous_digest,
            digest=Hasher.digest_record(position, timestamp, previous_digest, payload),
            payload=payload,
        )
        return ctx.commit(record)

    # ================================================================
    # OWNERSHIP
    # ================================================================

    def issue_ownership_challenge(self, address: str) -> str:
        """Challenge string the owner of address must sign."""
        challenge = self._verifier.issue_challenge(address)
        logger.debug("Ownership challenge issued", address=address)
        return challenge

    def submit_record(
        self,
        address: str,
        challenge: str,
        signature: str,
        star: dict[str, Any],
    ) -> Record:
        """
        Register a star: verify ownership, then append.

        The stored payload is the encoded {message, signature, star}.

        Raises:
            MalformedChallenge, ChallengeExpired, InvalidSignature,
            ChallengeReplayed: ownership rejected
            EmptyPayload: star is missing or empty
            InvalidPayload: star is not a JSON-serializable object
        """
        metrics = get_metrics()

        if not star:
            metrics.record_submission(accepted=False, reason="EmptyPayload")
            raise EmptyPayload("Star must not be empty")

        try:
            ownership = self._verifier.authenticate(challenge, address, signature)
        except OwnershipError as e:
            self._reject(address, e)
            raise

        # Encode before consuming, so a rejected star leaves the challenge usable
        try:
            payload = encode_submission(challenge, signature, star)
        except (PydanticValidationError, PydanticSerializationError) as e:
            metrics.record_submission(accepted=False, reason="InvalidPayload")
            raise InvalidPayload(f"Star cannot be encoded: {e}") from e

        try:
            self._verifier.consume(ownership)
        except OwnershipError as e:
            self._reject(address, e)
            raise

        record = self.append(payload, ownership)
        metrics.record_submission(accepted=True)
        return record

    def _reject(self, address: str, error: OwnershipError) -> None:
        get_metrics().record_submission(accepted=False, reason=type(error).__name__)
        logger.warning(
            "Submission rejected",
            address=address,
            reason=type(error).__name__,
            error=str(error),
        )

    # ================================================================
    # QUERIES
    # ================================================================

    def get_by_digest(self, digest: str) -> Optional[Record]:
        return queries.by_digest(self.snapshot(), digest)

    def get_by_position(self, position: int) -> Optional[Record]:
        return queries.by_position(self.snapshot(), position)

    def get_by_owner(self, address: str) -> list[OwnedStar]:
        """Stars registered by address, in append order (fresh scan per call)."""
        return queries.by_owner(self.snapshot(), address)

    def export_chain(self) -> list[dict[str, Any]]:
        """External representation of every record, in position order."""
        return [record.to_external() for record in self.snapshot()]

    # ================================================================
    # VALIDATION
    # ================================================================

    def validate(self) -> list[Finding]:
        """
        Audit the whole chain.

        Runs on a snapshot, so appends are only blocked while it is copied.
        """
        findings = ChainValidator.validate(self.snapshot())
        get_metrics().record_validation(len(findings))
        if findings:
            logger.error(
                "Chain validation found problems",
                finding_count=len(findings),
                kinds=sorted({f.kind.value for f in findings}),
            )
        return findings
