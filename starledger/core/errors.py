"""
Exception taxonomy for the ledger core.

Ownership and append errors are caller-input errors: they are raised to the
caller and never retried. Validation problems are NOT exceptions; they are
returned as findings (see ``starledger.schemas.findings``).
"""


class LedgerError(Exception):
    """Base exception for ledger errors."""
    pass


# ------------------------------------------------------------
# Ownership phase
# ------------------------------------------------------------

class OwnershipError(LedgerError):
    """Raised when proof of ownership is rejected."""
    pass


class MalformedChallenge(OwnershipError):
    """The challenge string does not match ``address:issued_at:domain_tag``."""
    pass


class ChallengeExpired(OwnershipError):
    """The challenge is outside the freshness window (or from the future)."""
    pass


class InvalidSignature(OwnershipError):
    """The signature does not verify, or the address does not match the challenge."""
    pass


class ChallengeReplayed(OwnershipError):
    """The challenge was already consumed (only with replay protection enabled)."""
    pass


# ------------------------------------------------------------
# Append phase
# ------------------------------------------------------------

class AppendError(LedgerError):
    """Raised when a record cannot be appended."""
    pass


class EmptyPayload(AppendError):
    """The payload is missing or empty."""
    pass


class InvalidPayload(AppendError):
    """The star cannot be encoded into a record payload."""
    pass


class ChainIntegrityError(LedgerError):
    """Raised when a commit does not line up with the current chain head."""
    pass


# ------------------------------------------------------------
# Payload decoding
# ------------------------------------------------------------

class DecodeFailed(LedgerError):
    """A record payload could not be decoded into a star submission."""
    pass
