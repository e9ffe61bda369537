"""
Query Layer

Read-only lookups over a snapshot of the ledger.
Absence is None (or an empty list), never an error.
"""

from typing import Callable, Optional, Sequence

from ..observability import get_logger, get_metrics
from ..schemas import OwnedStar, Record, StarSubmission
from .codec import decode_submission
from .errors import DecodeFailed


logger = get_logger(__name__)


def by_digest(records: Sequence[Record], digest: str) -> Optional[Record]:
    """First record carrying this digest (uniqueness is not enforced here)."""
    wanted = digest.lower()
    for record in records:
        if record.digest.lower() == wanted:
            return record
    return None


def by_position(records: Sequence[Record], position: int) -> Optional[Record]:
    """Record at this position, or None when out of range."""
    if position < 0:
        return None

    # Contiguous chain: position == index
    if position < len(records) and records[position].position == position:
        return records[position]

    for record in records:
        if record.position == position:
            return record
    return None


def owner_of(submission: StarSubmission) -> str:
    """
    Address embedded in the signed challenge.

    Raises:
        DecodeFailed: If the message does not look like a challenge
    """
    parts = submission.message.split(":")
    if len(parts) != 3 or not parts[0]:
        raise DecodeFailed(
            f"Submission message is not an ownership challenge: {submission.message!r}"
        )
    return parts[0]


def by_owner(
    records: Sequence[Record],
    address: str,
    decoder: Callable[[bytes], StarSubmission] = decode_submission,
) -> list[OwnedStar]:
    """
    All stars registered by an address, in append order.

    Genesis is skipped. Records that fail to decode are logged and
    counted, then skipped; they never fail the whole query.
    """
    stars: list[OwnedStar] = []

    for record in records:
        if record.is_genesis:
            continue

        try:
            submission = decoder(record.payload)
            owner = owner_of(submission)
        except DecodeFailed as e:
            get_metrics().record_decode_failure()
            logger.warning(
                "Skipping undecodable record",
                position=record.position,
                digest=record.digest,
                error=str(e),
            )
            continue

        if owner == address:
            stars.append(OwnedStar(owner=owner, star=submission.star))

    return stars
