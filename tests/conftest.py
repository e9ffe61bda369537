"""Shared fixtures for the star ledger tests."""

import pytest

from starledger.config import LedgerConfig
from starledger.core import LedgerService, Signer


T0 = 1_700_000_000


class FakeClock:
    """Deterministic integer-seconds clock."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


def submit_star(ledger, private_key, address, star):
    """Run the full handshake for one star."""
    challenge = ledger.issue_ownership_challenge(address)
    signature = Signer.sign(challenge, private_key)
    return ledger.submit_record(address, challenge, signature, star)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return LedgerConfig()


@pytest.fixture
def ledger(clock, config):
    return LedgerService(config=config, clock=clock)


@pytest.fixture
def owner_keys():
    return Signer.generate_keypair()


@pytest.fixture
def other_keys():
    return Signer.generate_keypair()


@pytest.fixture
def register():
    """The handshake helper, as a fixture."""
    return submit_star
