"""
Field-by-field comparison of a user claim against an extracted record.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Optional

from .models import ExtractedRecord, UserClaim
from .normalize import contains, normalize

MINOR_UNIT = Decimal("0.01")


def to_minor_units(amount: Decimal) -> int:
    """
    Express an amount in pence so equality is not subject to float drift.

    Raises:
        InvalidOperation: If the amount is not finite or too large to quantize
    """
    if not amount.is_finite():
        raise InvalidOperation(f"Cannot express {amount} in minor units")
    return int((amount.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP) / MINOR_UNIT).to_integral_value())


def format_amount(amount: Decimal) -> str:
    """Plain two-decimal rendering, e.g. Decimal("1.5E+3") -> "1500.00"."""
    try:
        return f"{amount.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP):f}"
    except InvalidOperation:
        return f"{amount:f}"


def _either_contains(extracted: Optional[str], claimed: str, fuzzy_threshold: Optional[int]) -> bool:
    # The document may carry a longer or a shorter form of the claimed value
    if not normalize(extracted) or not normalize(claimed):
        return False
    return contains(extracted, claimed, fuzzy_threshold) or contains(claimed, extracted)


def names_match(record: ExtractedRecord, claim: UserClaim, fuzzy_threshold: Optional[int] = None) -> bool:
    return any(
        _either_contains(tenant.full_name, claim.full_name, fuzzy_threshold)
        for tenant in record.tenants
    )


def address_matches(record: ExtractedRecord, claim: UserClaim, fuzzy_threshold: Optional[int] = None) -> bool:
    return _either_contains(record.property_address, claim.address, fuzzy_threshold)


def rent_matches(record: ExtractedRecord, claim: UserClaim) -> bool:
    extracted = record.rent.amount
    if extracted is None:
        return False
    try:
        claimed = Decimal(claim.rent.strip())
        if not claimed.is_finite():
            return False
        return to_minor_units(extracted) == to_minor_units(claimed)
    except InvalidOperation:
        return False


def date_matches(extracted: Optional[str], claimed: str) -> bool:
    """Exact YYYY-MM-DD string equality; no format normalization."""
    return extracted is not None and extracted == claimed.strip()


def compare(claim: UserClaim, record: ExtractedRecord, fuzzy_threshold: Optional[int] = None) -> Dict[str, bool]:
    """
    Judge each claim field against the extracted record.

    Pure and total: absent extracted values yield False, never an exception.

    Args:
        claim: User claim
        record: Record produced by StructuredExtractor
        fuzzy_threshold: Optional rapidfuzz cut-off for name and address

    Returns:
        Verdict per claim field
    """
    return {
        "fullName": names_match(record, claim, fuzzy_threshold),
        "address": address_matches(record, claim, fuzzy_threshold),
        "rent": rent_matches(record, claim),
        "startDate": date_matches(record.tenancy.start_date, claim.start_date),
        "endDate": date_matches(record.tenancy.end_date, claim.end_date),
    }
