"""
StarLedger - a local integrity ledger for registered stars.

Every record is hashed and chained to its predecessor.
Only holders of an Ed25519 key may append, after signing a short-lived
ownership challenge.
"""

__version__ = "0.1.0"
