"""
Cryptographic Hashing Service

Handles deterministic serialization and SHA-256 hashing of records.
Same record content → same digest. Always.

If this breaks, every digest already in the chain becomes unverifiable.
Every change here must be backward-compatible or versioned.

CANONICAL SERIALIZATION RULES:
1. Version: "__canon_v" injected into every canonical output (first key when sorted)
2. Dictionary keys: sorted recursively (Unicode codepoint order)
3. Nulls: omitted entirely (not serialized as null)
4. Empty strings, lists, dicts: preserved (they are valid data)
5. Integers: plain JSON integers
6. Bytes: lowercase hex string
7. Floats: BANNED
8. Sets: BANNED (no stable ordering)
9. JSON output: no extra whitespace, sorted keys, ASCII only
10. Top-level: must be dict/object
"""

import hashlib
import json
from typing import Any, Optional


class CanonicalSerializationError(Exception):
    """Raised when data cannot be canonically serialized."""
    pass


class Hasher:
    """
    Canonical serialization and hashing.

    IMMUTABLE CONTRACT:
    - Same logical input → same digest
    - Across platforms, runtimes and Python versions

    If the serialization rules change, SERIALIZATION_VERSION must change too.
    """

    SERIALIZATION_VERSION = 1

    @classmethod
    def _serialize_value(cls, value: Any, path: str = "") -> Any:
        """
        Convert a Python value to its canonical JSON-compatible form.

        Raises:
            CanonicalSerializationError: If value cannot be serialized deterministically
        """
        if value is None:
            return None  # Filtered out by _to_canonical_dict

        if isinstance(value, bool):
            return value

        if isinstance(value, int):
            return value

        if isinstance(value, float):
            raise CanonicalSerializationError(
                f"Cannot serialize float at {path}. "
                "Floats are banned in canonical content due to platform-dependent "
                "serialization. Use an integer or a string."
            )

        if isinstance(value, str):
            return value

        # Record payloads are opaque bytes; hex keeps them ASCII and unambiguous
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value).hex()

        if isinstance(value, (list, tuple)):
            return [
                cls._serialize_value(v, f"{path}[{i}]")
                for i, v in enumerate(value)
            ]

        if isinstance(value, dict):
            return cls._to_canonical_dict(value, path)

        if isinstance(value, (set, frozenset)):
            raise CanonicalSerializationError(
                f"Cannot serialize set at {path}. "
                "Sets have no stable ordering. Convert to sorted list first."
            )

        raise CanonicalSerializationError(
            f"Cannot serialize {type(value).__name__} at {path}. "
            "Only JSON-compatible types and bytes are allowed."
        )

    @classmethod
    def _to_canonical_dict(cls, data: dict[str, Any], path: str = "") -> dict[str, Any]:
        """Sort keys, drop None values, serialize values recursively."""
        result = {}

        for key in sorted(data.keys()):
            if not isinstance(key, str):
                raise CanonicalSerializationError(
                    f"Dictionary key at {path} must be string, "
                    f"got {type(key).__name__}"
                )

            key_path = f"{path}.{key}" if path else key
            serialized = cls._serialize_value(data[key], key_path)

            if serialized is not None:
                result[key] = serialized

        return result

    @classmethod
    def canonicalize(cls, data: dict[str, Any]) -> str:
        """
        Convert data to canonical JSON string.

        Args:
            data: Dict to serialize

        Returns:
            Canonical JSON string with version marker

        Raises:
            CanonicalSerializationError: If data cannot be deterministically serialized
        """
        if not isinstance(data, dict):
            raise CanonicalSerializationError(
                f"Top-level canonicalization requires a dict/object, "
                f"got {type(data).__name__}."
            )

        canonical_dict = cls._to_canonical_dict(data)

        # "__canon_v" sorts first alphabetically due to underscore
        canonical_dict = {"__canon_v": cls.SERIALIZATION_VERSION, **canonical_dict}

        return json.dumps(
            canonical_dict,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=True,
            allow_nan=False,
        )

    @classmethod
    def hash_data(cls, data: dict[str, Any]) -> str:
        """
        Hash data using SHA-256.

        Returns:
            Hex-encoded SHA-256 hash (64 characters, lowercase)
        """
        canonical = cls.canonicalize(data)
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    @classmethod
    def digest_record(
        cls,
        position: int,
        timestamp: int,
        previous_digest: Optional[str],
        payload: bytes,
    ) -> str:
        """
        Compute the digest of a record from everything except its own digest.

        The field set is explicit so that no attribute added to the record model
        later can silently change existing digests.

        FORMAT:
            SHA256(canonical({position, timestamp, previous_digest, payload}))

        The genesis sentinel (previous_digest=None) is omitted from the
        canonical form, like every other null.
        """
        if previous_digest is not None:
            if len(previous_digest) != 64 or not all(
                c in "0123456789abcdef" for c in previous_digest.lower()
            ):
                raise CanonicalSerializationError(
                    f"Invalid previous_digest format: {previous_digest}. "
                    "Must be 64 hex characters."
                )
            previous_digest = previous_digest.lower()

        return cls.hash_data({
            "position": position,
            "timestamp": timestamp,
            "previous_digest": previous_digest,
            "payload": payload,
        })

    @classmethod
    def verify_digest(cls, computed: str, recorded: str) -> bool:
        """
        Compare a recomputed digest with a recorded one.

        Exact match: digests are always stored as lowercase hex, and the
        link check compares previous_digest the same way.
        """
        return cls._constant_time_compare(computed, recorded)

    @staticmethod
    def _constant_time_compare(a: str, b: str) -> bool:
        """
        Compare two strings in constant time.

        Prevents timing attacks where an attacker could learn
        about the digest by measuring comparison time.
        """
        if len(a) != len(b):
            return False

        result = 0
        for x, y in zip(a, b):
            result |= ord(x) ^ ord(y)

        return result == 0
