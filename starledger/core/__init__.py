# Core ledger services
from .errors import (
    LedgerError,
    OwnershipError,
    MalformedChallenge,
    ChallengeExpired,
    InvalidSignature,
    ChallengeReplayed,
    AppendError,
    EmptyPayload,
    InvalidPayload,
    ChainIntegrityError,
    DecodeFailed,
)
from .hasher import Hasher, CanonicalSerializationError
from .signer import Signer
from .ownership import (
    Challenge,
    ConsumedChallenges,
    OwnershipVerifier,
    VerifiedOwnership,
)
from .codec import encode_submission, decode_submission
from .validator import ChainValidator
from .ledger import LedgerService

__all__ = [
    "LedgerError",
    "OwnershipError",
    "MalformedChallenge",
    "ChallengeExpired",
    "InvalidSignature",
    "ChallengeReplayed",
    "AppendError",
    "EmptyPayload",
    "InvalidPayload",
    "ChainIntegrityError",
    "DecodeFailed",
    "Hasher",
    "CanonicalSerializationError",
    "Signer",
    "Challenge",
    "ConsumedChallenges",
    "OwnershipVerifier",
    "VerifiedOwnership",
    "encode_submission",
    "decode_submission",
    "ChainValidator",
    "LedgerService",
]
