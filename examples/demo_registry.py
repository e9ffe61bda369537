"""
Demonstration: Registering Stars

Shows the full handshake: request a challenge, sign it, submit a star,
query by owner and audit the chain.

Run with: python -m examples.demo_registry
"""

from starledger.core import LedgerService, Signer


def main():
    print("=" * 60)
    print("StarLedger - Star Registration Demonstration")
    print("=" * 60)
    print()

    ledger = LedgerService()

    genesis = ledger.get_by_position(0)
    print(f"[OK] Ledger initialized, height {ledger.height()}")
    print(f"   Genesis digest: {genesis.digest[:16]}...")
    print()

    # Wallet side: a key pair, the address is the public key
    private_key, address = Signer.generate_keypair()
    print(f"Owner address: {address[:16]}...")
    print()

    stars = [
        {"dec": "68° 52' 56.9", "ra": "16h 29m 1.0s", "story": "First star"},
        {"dec": "-26° 29' 24.9", "ra": "13h 3m 33.35s", "story": "Second star"},
    ]

    for star in stars:
        challenge = ledger.issue_ownership_challenge(address)
        signature = Signer.sign(challenge, private_key)
        record = ledger.submit_record(address, challenge, signature, star)

        print(f"[OK] Star registered: {star['story']}")
        print(f"   Position: {record.position}")
        print(f"   Digest:   {record.digest[:16]}...")
        print(f"   Previous: {record.previous_digest[:16]}...")
        print()

    print("=" * 60)
    print("STARS OWNED")
    print("=" * 60)
    for owned in ledger.get_by_owner(address):
        print(f"   {owned.star['story']}: ra {owned.star['ra']}, dec {owned.star['dec']}")
    print()

    print("=" * 60)
    print("CHAIN AUDIT")
    print("=" * 60)
    findings = ledger.validate()
    if findings:
        for finding in findings:
            print(f"[FAIL] {finding.describe()}")
    else:
        print(f"[OK] {ledger.height()} records, no findings")


if __name__ == "__main__":
    main()
