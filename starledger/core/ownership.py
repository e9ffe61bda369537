"""
Ownership Verifier

Gates who may append to the ledger.

HANDSHAKE:
1. Client asks for a challenge for its address:
       "{address}:{issued_at}:{domain_tag}"
2. Client signs the challenge with the key behind the address (wallet side)
3. Client submits (address, challenge, signature, star)
4. Verifier checks format, freshness and signature

FRESHNESS:
- elapsed = now - issued_at, in true wall-clock seconds
- elapsed < 0 (challenge from the future) is rejected
- elapsed >= window is rejected; a challenge exactly 300s old is expired

Issuance is stateless: issued challenges are not tracked, callers are
trusted to return the string they were given. Replay of a captured
(challenge, signature) pair within the window is only prevented when the
opt-in ConsumedChallenges guard is installed.
"""

import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Optional

from ..config import DEFAULT_DOMAIN_TAG, DEFAULT_FRESHNESS_WINDOW_SECONDS, LedgerConfig
from .errors import (
    ChallengeExpired,
    ChallengeReplayed,
    InvalidSignature,
    MalformedChallenge,
)
from .signer import Signer


Clock = Callable[[], int]


def unix_now() -> int:
    """Current time as integer seconds since the epoch."""
    return int(time.time())


@dataclass(frozen=True)
class Challenge:
    """A parsed ownership challenge."""
    address: str
    issued_at: int
    domain_tag: str

    def render(self) -> str:
        return f"{self.address}:{self.issued_at}:{self.domain_tag}"


@dataclass(frozen=True)
class VerifiedOwnership:
    """
    Proof that an address passed the ownership check.

    Only OwnershipVerifier.verify() hands these out; the ledger requires one
    for every append.
    """
    address: str
    challenge: str
    signature: str
    verified_at: int


class ConsumedChallenges:
    """
    Replay guard: remembers successfully used challenges.

    Entries live as long as the freshness window; after that the
    challenge is expired anyway and the entry is dropped.
    """

    def __init__(self, freshness_window: int):
        self._window = freshness_window
        self._consumed: dict[str, int] = {}  # challenge -> issued_at
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._consumed)

    def consume(self, challenge: Challenge, now: int) -> None:
        """
        Mark a challenge as used.

        Raises:
            ChallengeReplayed: If the challenge was already consumed
        """
        key = challenge.render()
        with self._lock:
            self._prune(now)
            if key in self._consumed:
                raise ChallengeReplayed(
                    f"Challenge for {challenge.address} was already used"
                )
            self._consumed[key] = challenge.issued_at

    def _prune(self, now: int) -> None:
        expired = [
            key for key, issued_at in self._consumed.items()
            if now - issued_at >= self._window
        ]
        for key in expired:
            del self._consumed[key]


class OwnershipVerifier:
    """
    Issues and verifies time-boxed ownership challenges.

    Safe to share between threads: the only state is the optional
    replay guard, which locks internally.
    """

    def __init__(
        self,
        domain_tag: str = DEFAULT_DOMAIN_TAG,
        freshness_window: int = DEFAULT_FRESHNESS_WINDOW_SECONDS,
        clock: Optional[Clock] = None,
        replay_guard: Optional[ConsumedChallenges] = None,
    ):
        self.domain_tag = domain_tag
        self.freshness_window = freshness_window
        self._clock = clock or unix_now
        self._replay_guard = replay_guard

    @classmethod
    def from_config(
        cls,
        config: LedgerConfig,
        clock: Optional[Clock] = None,
    ) -> "OwnershipVerifier":
        guard = None
        if config.replay_protection:
            guard = ConsumedChallenges(config.freshness_window_seconds)
        return cls(
            domain_tag=config.domain_tag,
            freshness_window=config.freshness_window_seconds,
            clock=clock,
            replay_guard=guard,
        )

    @property
    def replay_protection(self) -> bool:
        return self._replay_guard is not None

    def issue_challenge(self, address: str) -> str:
        """
        Build a challenge for an address.

        Raises:
            MalformedChallenge: If the address cannot be embedded unambiguously
        """
        if not isinstance(address, str) or not address or ":" in address:
            raise MalformedChallenge(
                f"Address must be a non-empty string without ':', got {address!r}"
            )
        return Challenge(address, self._clock(), self.domain_tag).render()

    def parse_challenge(self, challenge: str) -> Challenge:
        """
        Split a challenge into (address, issued_at, domain_tag).

        Raises:
            MalformedChallenge: If the format does not match
        """
        if not isinstance(challenge, str):
            raise MalformedChallenge(
                f"Challenge must be a string, got {type(challenge).__name__}"
            )

        parts = challenge.split(":")
        if len(parts) != 3:
            raise MalformedChallenge(
                f"Challenge must have the form address:issued_at:domain_tag, "
                f"got {len(parts)} part(s)"
            )

        address, issued_at, domain_tag = parts
        if not address:
            raise MalformedChallenge("Challenge has an empty address")
        if not (issued_at.isascii() and issued_at.isdigit()):
            raise MalformedChallenge(
                f"Challenge timestamp must be integer seconds, got {issued_at!r}"
            )
        if domain_tag != self.domain_tag:
            raise MalformedChallenge(
                f"Challenge domain tag {domain_tag!r} does not match {self.domain_tag!r}"
            )

        return Challenge(address=address, issued_at=int(issued_at), domain_tag=domain_tag)

    def verify(
        self,
        challenge: str,
        claimed_address: str,
        signature: str,
    ) -> VerifiedOwnership:
        """
        Verify that claimed_address signed a fresh challenge.

        Order of checks:
        1. Format (MalformedChallenge)
        2. Freshness (ChallengeExpired)
        3. Address binding and signature (InvalidSignature)
        4. Replay guard, if installed (ChallengeReplayed)
        """
        ownership = self.authenticate(challenge, claimed_address, signature)
        self.consume(ownership)
        return ownership

    def authenticate(
        self,
        challenge: str,
        claimed_address: str,
        signature: str,
    ) -> VerifiedOwnership:
        """
        Checks 1-3 of verify() without touching the replay guard.

        Callers that still have to validate their payload use this, then
        call consume() once nothing else can fail.
        """
        parsed = self.parse_challenge(challenge)

        now = self._clock()
        elapsed = now - parsed.issued_at
        if elapsed < 0:
            raise ChallengeExpired(
                f"Challenge issued {-elapsed}s in the future"
            )
        if elapsed >= self.freshness_window:
            raise ChallengeExpired(
                f"Challenge is {elapsed}s old, window is {self.freshness_window}s"
            )

        if claimed_address != parsed.address:
            raise InvalidSignature(
                "Claimed address does not match the address in the challenge"
            )

        if not Signer.verify(challenge, signature, claimed_address):
            raise InvalidSignature(
                f"Signature verification failed for address {claimed_address}"
            )

        return VerifiedOwnership(
            address=claimed_address,
            challenge=challenge,
            signature=signature,
            verified_at=now,
        )

    def consume(self, ownership: VerifiedOwnership) -> None:
        """
        Mark the challenge behind ownership as used. No-op without a guard.

        Raises:
            ChallengeReplayed: If the challenge was already consumed
        """
        if self._replay_guard is None:
            return
        parsed = self.parse_challenge(ownership.challenge)
        self._replay_guard.consume(parsed, ownership.verified_at)
