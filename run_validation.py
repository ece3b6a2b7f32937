#!/usr/bin/env python3
"""
run_validation.py — Check the pattern catalog against the fixed corpus.

Usage:
    python run_validation.py                  # Text report
    python run_validation.py --threshold 2.0  # Validate at another threshold
    python run_validation.py --json           # Output JSON only (for CI)
"""

from __future__ import annotations

import argparse
import json
import sys

from deescalator.catalog import CATALOG
from deescalator.validation import validate_catalog


def format_report(report) -> str:
    lines = [
        "=" * 60,
        f"Catalog {report.catalog_version} — fixed corpus validation",
        "=" * 60,
        f"Cases:    {report.total}",
        f"Failures: {len(report.failures)}",
    ]
    for failure in report.failures:
        lines.append(f"  - '{failure['text']}': {failure['problem']}")
    lines.append("PASSED" if report.passed else "FAILED")
    return "\n".join(lines)


def main():
    parser = argparse.ArgumentParser(description="De-escalator Catalog Validation")
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Escalation threshold (default: DEESCALATOR_THRESHOLD setting)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON only (for CI/automation)",
    )
    args = parser.parse_args()

    report = validate_catalog(CATALOG, threshold=args.threshold)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(format_report(report))

    # Exit code for CI
    sys.exit(0 if report.passed else 2)


if __name__ == "__main__":
    main()
