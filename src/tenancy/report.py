"""
Aggregation of field verdicts into a VerificationReport.
"""

from typing import Iterable, Mapping, Optional

from .models import CLAIM_FIELDS, ExtractedRecord, VerificationReport

DEPOSIT_ISSUE = "Could not extract deposit amount from document"
NO_TEXT_ISSUE = "No text could be extracted from document"


def mismatch_issue(field_name: str) -> str:
    return f"Mismatch on {field_name}"


def build_report(
    verdicts: Mapping[str, bool],
    extracted_deposit: Optional[str],
    extraction_issues: Iterable[str] = (),
    extracted: Optional[ExtractedRecord] = None,
    strategy: str = "direct"
) -> VerificationReport:
    """
    Build the report for one verification request.

    Issues are ordered: field mismatches in claim declaration order, then the
    deposit issue, then extraction pipeline issues. A field missing from
    ``verdicts`` counts as a mismatch.

    Args:
        verdicts: Verdict per claim field
        extracted_deposit: Deposit amount string, or None if not found
        extraction_issues: Pipeline problems to report
        extracted: Structured record, if one was produced
        strategy: Strategy that produced the verdicts

    Returns:
        VerificationReport
    """
    match = {name: bool(verdicts.get(name, False)) for name in CLAIM_FIELDS}

    issues = [mismatch_issue(name) for name in CLAIM_FIELDS if not match[name]]
    if not extracted_deposit:
        issues.append(DEPOSIT_ISSUE)
    issues.extend(extraction_issues)

    return VerificationReport(
        match=match,
        extracted_deposit=extracted_deposit or None,
        issues=tuple(issues),
        extracted=extracted,
        strategy=strategy,
    )
