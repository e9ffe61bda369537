"""
Star Submission Schema

The decoded form of a record payload: the ownership challenge that was
signed, the signature, and the star being registered.

The star itself is free-form (right ascension, declination, a story...),
only required to be a non-empty object.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StarSubmission(BaseModel):
    """Decoded payload of a non-genesis record."""

    message: str = Field(
        ...,
        min_length=1,
        description="The ownership challenge that was signed"
    )

    signature: str = Field(
        ...,
        min_length=1,
        description="Base64 Ed25519 signature over the message"
    )

    star: dict[str, Any] = Field(
        ...,
        description="The registered star"
    )

    @field_validator("star")
    @classmethod
    def star_not_empty(cls, v: dict[str, Any]) -> dict[str, Any]:
        if not v:
            raise ValueError("star must not be empty")
        return v

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "message": "3b6a27bcceb6a42d62a3a8d02a6f0d73653215771de243a63ac048a18b59da29:1700000000:starRegistry",
            "signature": "base64signature...",
            "star": {
                "dec": "68° 52' 56.9",
                "ra": "16h 29m 1.0s",
                "story": "Testing the story 4",
            },
        }
    })


class OwnedStar(BaseModel):
    """One entry of an owner query."""

    owner: str
    star: dict[str, Any]
