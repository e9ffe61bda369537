#!/usr/bin/env python3
"""
Star Ledger Chain Verifier

Verifies an exported chain file independently of a running server.
The file is the JSON list produced by LedgerService.export_chain()
(or GET /api/chain).

Usage:
    python -m tools.verify chain.json
    python -m tools.verify chain.json --json

Exit codes:
    0 - VERIFIED: No findings
    1 - TAMPERED: At least one finding
    3 - INVALID_FORMAT: File missing or not a chain export
"""

import argparse
import json
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from starledger.core import ChainValidator
from starledger.schemas import Finding, Record


# ============================================================
# Result Types
# ============================================================

class VerificationResult(Enum):
    VERIFIED = "VERIFIED"
    TAMPERED = "TAMPERED"
    INVALID_FORMAT = "INVALID_FORMAT"


@dataclass
class VerificationReport:
    result: VerificationResult
    record_count: int
    findings: list[Finding] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "result": self.result.value,
            "record_count": self.record_count,
            "findings": [f.model_dump(mode="json") for f in self.findings],
            "error": self.error,
        }


EXIT_CODES = {
    VerificationResult.VERIFIED: 0,
    VerificationResult.TAMPERED: 1,
    VerificationResult.INVALID_FORMAT: 3,
}


# ============================================================
# Verification
# ============================================================

def load_chain(data: Any) -> list[Record]:
    """
    Parse a chain export.

    Raises:
        ValueError: If the data is not a list of external records
    """
    if not isinstance(data, list):
        raise ValueError(f"Chain export must be a JSON list, got {type(data).__name__}")
    return [Record.from_external(item) for item in data]


def verify_chain_data(data: Any) -> VerificationReport:
    """Verify already-parsed chain export data."""
    try:
        records = load_chain(data)
    except ValueError as e:
        return VerificationReport(
            result=VerificationResult.INVALID_FORMAT,
            record_count=0,
            error=str(e),
        )

    findings = ChainValidator.validate(records)
    return VerificationReport(
        result=VerificationResult.TAMPERED if findings else VerificationResult.VERIFIED,
        record_count=len(records),
        findings=findings,
    )


def verify_file(path: Path) -> VerificationReport:
    """Load and verify a chain export file."""
    if not path.exists():
        return VerificationReport(
            result=VerificationResult.INVALID_FORMAT,
            record_count=0,
            error=f"File not found: {path}",
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        return VerificationReport(
            result=VerificationResult.INVALID_FORMAT,
            record_count=0,
            error=f"Invalid JSON: {e}",
        )
    except (OSError, UnicodeDecodeError) as e:
        return VerificationReport(
            result=VerificationResult.INVALID_FORMAT,
            record_count=0,
            error=f"Cannot read file: {e}",
        )

    return verify_chain_data(data)


# ============================================================
# CLI
# ============================================================

def print_report(report: VerificationReport, json_output: bool = False) -> None:
    """Print verification report."""
    if json_output:
        print(json.dumps(report.to_dict(), indent=2))
        return

    banners = {
        VerificationResult.VERIFIED: "[VERIFIED] - Chain is intact",
        VerificationResult.TAMPERED: "[TAMPERED] - Integrity problems found",
        VerificationResult.INVALID_FORMAT: "[INVALID_FORMAT] - Not a chain export",
    }
    print("\n" + "=" * 60)
    print(f"  {banners[report.result]}")
    print("=" * 60)

    print(f"\nRecords: {report.record_count}")

    if report.error:
        print(f"\nError: {report.error}")

    if report.findings:
        print("\nFindings:")
        for finding in report.findings:
            print(f"  - {finding.describe()}")

    print()


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Verify an exported star ledger chain",
        epilog="Exit codes: 0=VERIFIED, 1=TAMPERED, 3=INVALID_FORMAT"
    )
    parser.add_argument(
        "chain",
        type=str,
        help="Path to the chain export JSON file"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output result as JSON"
    )

    args = parser.parse_args(argv)

    report = verify_file(Path(args.chain))
    print_report(report, json_output=args.json)
    return EXIT_CODES[report.result]


if __name__ == "__main__":
    sys.exit(main())
