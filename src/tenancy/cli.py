"""
Command-line entry point: verify a tenancy agreement file against claimed details.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import STRATEGIES, VerifierConfig
from .exceptions import ParseError, ValidationError, VerificationUnavailable
from .ingest import read_document
from .models import UserClaim
from .verifier import TenancyVerifier


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tenancy-verify",
        description="Verify tenancy details against a tenancy agreement (PDF or text file)."
    )
    parser.add_argument("document", help="Path to the tenancy agreement (.pdf or text)")
    parser.add_argument("--full-name", required=True)
    parser.add_argument("--address", required=True)
    parser.add_argument("--rent", required=True, help="Monthly rent, e.g. 1200 or 1200.00")
    parser.add_argument("--start-date", required=True, help="YYYY-MM-DD")
    parser.add_argument("--end-date", required=True, help="YYYY-MM-DD")
    parser.add_argument("--strategy", choices=STRATEGIES, default=None)
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        claim = UserClaim.from_form({
            "fullName": args.full_name,
            "address": args.address,
            "rent": args.rent,
            "startDate": args.start_date,
            "endDate": args.end_date,
        })
    except ValidationError as e:
        print(f"Invalid claim: {e}", file=sys.stderr)
        return 2

    try:
        text = read_document(args.document)
    except ParseError as e:
        # Treated as a document with no text; the report records it
        print(f"Warning: {e}", file=sys.stderr)
        text = ""
    except OSError as e:
        print(f"Could not open document: {e}", file=sys.stderr)
        return 2

    overrides = {"strategy": args.strategy} if args.strategy else {}
    verifier = TenancyVerifier(VerifierConfig.from_env(**overrides))

    try:
        report = verifier.verify(claim, text)
    except VerificationUnavailable as e:
        print(f"Verification unavailable: {e}", file=sys.stderr)
        return 2

    print(json.dumps(report.to_dict(), indent=2))
    return 0 if report.success else 1


if __name__ == "__main__":
    sys.exit(main())
