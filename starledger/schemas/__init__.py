# Canonical schemas for the star ledger.
# These define the shapes that records, payloads and findings must obey.

from .record import Record, GENESIS_PAYLOAD
from .submission import StarSubmission, OwnedStar
from .findings import (
    Finding,
    FindingKind,
    EmptyChain,
    TamperedBody,
    BrokenLink,
    PositionMismatch,
)

__all__ = [
    # Record
    "Record",
    "GENESIS_PAYLOAD",
    # Submission
    "StarSubmission",
    "OwnedStar",
    # Findings
    "Finding",
    "FindingKind",
    "EmptyChain",
    "TamperedBody",
    "BrokenLink",
    "PositionMismatch",
]
