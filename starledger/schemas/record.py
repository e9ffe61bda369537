"""
Record Schema

A record is one link of the chain.
Nothing is "edited". Records are appended, then they exist forever.

Rules:
- No UPDATE
- No DELETE
- Ever

Chain Integrity Rules:
- position is 0 for genesis and grows by exactly 1, no gaps
- previous_digest is None ONLY for genesis (position 0)
- digest is reproducible from (position, timestamp, previous_digest, payload)
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# Well-known genesis payload, never supplied by callers
GENESIS_PAYLOAD = b'{"data":"Genesis Block"}'


class Record(BaseModel):
    """The immutable ledger record."""

    model_config = ConfigDict(frozen=True)

    position: int = Field(
        ...,
        ge=0,
        description="Zero-based index in the chain (0 for genesis)"
    )

    timestamp: int = Field(
        ...,
        ge=0,
        description="Append time, integer seconds since the epoch"
    )

    # None ONLY for genesis (position == 0)
    previous_digest: Optional[str] = Field(
        default=None,
        description="Digest of the preceding record. None for genesis."
    )

    digest: str = Field(
        ...,
        description="SHA-256 over the canonical (position, timestamp, previous_digest, payload)"
    )

    payload: bytes = Field(
        ...,
        description="Opaque record body"
    )

    @property
    def is_genesis(self) -> bool:
        """Check if this is the genesis (first) record."""
        return self.position == 0

    def to_external(self) -> dict[str, Any]:
        """
        External representation for transport or a future durable log.

        Payload bytes are hex-encoded so the result is plain JSON.
        """
        return {
            "position": self.position,
            "timestamp": self.timestamp,
            "previous_digest": self.previous_digest,
            "digest": self.digest,
            "payload": self.payload.hex(),
        }

    @classmethod
    def from_external(cls, data: dict[str, Any]) -> "Record":
        """
        Rebuild a record from its external representation.

        Raises:
            ValueError: If a field is missing or the payload is not hex
        """
        try:
            payload = bytes.fromhex(data["payload"])
            return cls(
                position=data["position"],
                timestamp=data["timestamp"],
                previous_digest=data.get("previous_digest"),
                digest=data["digest"],
                payload=payload,
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed record: {e}") from e
