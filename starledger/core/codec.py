"""
Payload codec for star submissions.

Record payloads are opaque bytes to the chain. Star submissions are stored
as UTF-8 JSON with sorted keys and no whitespace, so the same submission
always produces the same bytes.

Decoding is explicit and fallible: anything that is not a well-formed
submission raises DecodeFailed instead of producing half-empty values.
"""

import json
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..schemas import StarSubmission
from .errors import DecodeFailed


def encode_submission(message: str, signature: str, star: dict[str, Any]) -> bytes:
    """Encode a star submission into record payload bytes."""
    submission = StarSubmission(message=message, signature=signature, star=star)
    return json.dumps(
        submission.model_dump(mode="json"),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def decode_submission(payload: bytes) -> StarSubmission:
    """
    Decode record payload bytes into a star submission.

    Raises:
        DecodeFailed: If the payload is not a valid submission
    """
    if not payload:
        raise DecodeFailed("Payload is empty")

    try:
        data = json.loads(bytes(payload).decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeFailed(f"Payload is not UTF-8 JSON: {e}") from e

    if not isinstance(data, dict):
        raise DecodeFailed(
            f"Payload must be a JSON object, got {type(data).__name__}"
        )

    try:
        return StarSubmission.model_validate(data)
    except PydanticValidationError as e:
        raise DecodeFailed(f"Payload is not a star submission: {e}") from e
