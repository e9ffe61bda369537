"""
Validation Findings

A finding is an integrity problem reported by the chain validator.
Findings are DATA, not exceptions: validation's job is to enumerate
every problem, so nothing here is ever raised.
"""

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class FindingKind(str, Enum):
    """
    All possible finding kinds.
    You can add more later, never remove.
    """
    EMPTY_CHAIN = "EMPTY_CHAIN"
    TAMPERED_BODY = "TAMPERED_BODY"
    BROKEN_LINK = "BROKEN_LINK"
    POSITION_MISMATCH = "POSITION_MISMATCH"


class EmptyChain(BaseModel):
    """The ledger holds no records at all, not even genesis."""
    kind: Literal[FindingKind.EMPTY_CHAIN] = FindingKind.EMPTY_CHAIN

    def describe(self) -> str:
        return "No record present on the chain."


class TamperedBody(BaseModel):
    """The recorded digest does not match the record's content."""
    kind: Literal[FindingKind.TAMPERED_BODY] = FindingKind.TAMPERED_BODY
    position: int
    recorded_digest: str
    # None when the content cannot be canonicalized at all
    expected_digest: Optional[str] = None

    def describe(self) -> str:
        return (
            f"Record {self.position} body has been altered: "
            f"recorded {self.recorded_digest[:16]}..., "
            f"expected {(self.expected_digest or 'unhashable')[:16]}..."
        )


class BrokenLink(BaseModel):
    """previous_digest does not point at the preceding record."""
    kind: Literal[FindingKind.BROKEN_LINK] = FindingKind.BROKEN_LINK
    position: int
    expected: Optional[str] = Field(
        default=None,
        description="Digest of the preceding record (None for the first record)"
    )
    actual: Optional[str] = Field(
        default=None,
        description="previous_digest stored in this record"
    )

    def describe(self) -> str:
        return (
            f"Record {self.position} link broken: "
            f"expected previous digest {self.expected}, found {self.actual}"
        )


class PositionMismatch(BaseModel):
    """The record at index i does not carry position i."""
    kind: Literal[FindingKind.POSITION_MISMATCH] = FindingKind.POSITION_MISMATCH
    index: int
    recorded_position: int

    def describe(self) -> str:
        return (
            f"Record at index {self.index} claims position "
            f"{self.recorded_position}"
        )


Finding = Union[EmptyChain, TamperedBody, BrokenLink, PositionMismatch]
