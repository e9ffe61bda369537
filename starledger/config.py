"""
Ledger Configuration

Environment Variables:
    STARLEDGER_DOMAIN_TAG: Tag embedded in every ownership challenge
        (default starRegistry)
    STARLEDGER_FRESHNESS_WINDOW_SECONDS: Seconds a challenge stays valid
        (default 300)
    STARLEDGER_REPLAY_PROTECTION: Reject a challenge that was already used
        within its freshness window (default off)

Logging is configured separately, see ``starledger.observability``.
"""

import os
from dataclasses import dataclass


DEFAULT_DOMAIN_TAG = "starRegistry"
DEFAULT_FRESHNESS_WINDOW_SECONDS = 300


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class LedgerConfig:
    """Settings for the ownership gate."""
    domain_tag: str = DEFAULT_DOMAIN_TAG
    freshness_window_seconds: int = DEFAULT_FRESHNESS_WINDOW_SECONDS
    replay_protection: bool = False

    def __post_init__(self):
        if not self.domain_tag or ":" in self.domain_tag:
            raise ValueError(
                f"domain_tag must be non-empty and must not contain ':', "
                f"got {self.domain_tag!r}"
            )
        if self.freshness_window_seconds <= 0:
            raise ValueError(
                f"freshness_window_seconds must be positive, "
                f"got {self.freshness_window_seconds}"
            )

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - STARLEDGER_DOMAIN_TAG
        - STARLEDGER_FRESHNESS_WINDOW_SECONDS
        - STARLEDGER_REPLAY_PROTECTION
        """
        return cls(
            domain_tag=os.getenv("STARLEDGER_DOMAIN_TAG", DEFAULT_DOMAIN_TAG),
            freshness_window_seconds=int(
                os.getenv(
                    "STARLEDGER_FRESHNESS_WINDOW_SECONDS",
                    str(DEFAULT_FRESHNESS_WINDOW_SECONDS),
                )
            ),
            replay_protection=_env_flag("STARLEDGER_REPLAY_PROTECTION"),
        )
