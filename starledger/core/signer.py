"""
Cryptographic Signing Service

Uses Ed25519 for proving ownership of an address.

An address IS the public key: the lowercase hex encoding of a 32-byte
Ed25519 verify key. Nothing has to be looked up to verify a signature,
the key is recovered from the address itself.

Signatures are base64-encoded raw Ed25519 signatures (64 bytes).
"""

import base64
from typing import Tuple

from nacl.encoding import HexEncoder
from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import SigningKey, VerifyKey


ADDRESS_LENGTH = 64  # 32 bytes, hex


class Signer:
    """
    Ed25519 signing for ownership challenges.

    Wallet tooling lives outside the ledger; these helpers exist so that
    clients, tests and demos can produce signatures the verifier accepts.
    """

    @staticmethod
    def generate_keypair() -> Tuple[str, str]:
        """
        Generate a new Ed25519 keypair.

        Returns:
            Tuple of (private_key_b64, address)
        """
        signing_key = SigningKey.generate()

        private_b64 = base64.b64encode(bytes(signing_key)).decode("utf-8")
        address = signing_key.verify_key.encode(encoder=HexEncoder).decode("ascii")

        return private_b64, address

    @staticmethod
    def address_for(private_key_b64: str) -> str:
        """Derive the address belonging to a base64-encoded private key."""
        signing_key = SigningKey(base64.b64decode(private_key_b64))
        return signing_key.verify_key.encode(encoder=HexEncoder).decode("ascii")

    @staticmethod
    def is_address(address: str) -> bool:
        """Check that a string is shaped like an address (64 hex chars)."""
        if not isinstance(address, str) or len(address) != ADDRESS_LENGTH:
            return False
        return all(c in "0123456789abcdef" for c in address.lower())

    @staticmethod
    def verify_key_for(address: str) -> VerifyKey:
        """
        Recover the Ed25519 verify key from an address.

        Raises:
            ValueError: If the address is not a valid encoded public key
        """
        if not Signer.is_address(address):
            raise ValueError(f"Not an address: {address!r}")
        return VerifyKey(address.lower().encode("ascii"), encoder=HexEncoder)

    @staticmethod
    def sign(message: str, private_key_b64: str) -> str:
        """
        Sign a message with Ed25519.

        Args:
            message: The string to sign (typically an ownership challenge)
            private_key_b64: Base64-encoded private key

        Returns:
            Base64-encoded signature
        """
        signing_key = SigningKey(base64.b64decode(private_key_b64))
        signed = signing_key.sign(message.encode("utf-8"))
        return base64.b64encode(signed.signature).decode("utf-8")

    @staticmethod
    def verify(message: str, signature_b64: str, address: str) -> bool:
        """
        Verify an Ed25519 signature against an address.

        Returns:
            True if signature is valid, False otherwise
        """
        try:
            verify_key = Signer.verify_key_for(address)
            signature_bytes = base64.b64decode(signature_b64, validate=True)
            verify_key.verify(message.encode("utf-8"), signature_bytes)
            return True
        except (BadSignatureError, CryptoError, ValueError, TypeError):
            return False
