"""
Chain Validator

Audits a snapshot of the ledger and reports every integrity problem.

This is a batch/report design, not fail-fast:
- every record is checked, even after a problem is found
- body and link checks run independently, one record can fail both
- nothing is raised, findings are returned as data
- nothing is mutated
"""

from typing import Optional, Sequence

from ..schemas import (
    BrokenLink,
    EmptyChain,
    Finding,
    PositionMismatch,
    Record,
    TamperedBody,
)
from .hasher import CanonicalSerializationError, Hasher


class ChainValidator:
    """Recomputes digests and checks linkage over a sequence of records."""

    @staticmethod
    def expected_digest(record: Record) -> Optional[str]:
        """
        Recompute a record's digest from its content.

        Returns None when the content cannot be canonicalized (for example a
        previous_digest that is not hex), which is reported as tampering.
        """
        try:
            return Hasher.digest_record(
                record.position,
                record.timestamp,
                record.previous_digest,
                record.payload,
            )
        except CanonicalSerializationError:
            return None

    @classmethod
    def validate(cls, records: Sequence[Record]) -> list[Finding]:
        """
        Validate a full chain snapshot.

        Returns:
            Findings in record order; an empty list means the chain is valid
        """
        if not records:
            return [EmptyChain()]

        findings: list[Finding] = []
        previous_digest: Optional[str] = None

        for index, record in enumerate(records):
            if record.position != index:
                findings.append(PositionMismatch(
                    index=index,
                    recorded_position=record.position,
                ))

            # 1. Body: recorded digest must match the content
            expected = cls.expected_digest(record)
            if expected is None or not Hasher.verify_digest(expected, record.digest):
                findings.append(TamperedBody(
                    position=record.position,
                    recorded_digest=record.digest,
                    expected_digest=expected,
                ))

            # 2. Link: must point at the predecessor's recorded digest
            if record.previous_digest != previous_digest:
                findings.append(BrokenLink(
                    position=record.position,
                    expected=previous_digest,
                    actual=record.previous_digest,
                ))

            previous_digest = record.digest

        return findings
