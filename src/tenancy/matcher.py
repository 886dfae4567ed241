"""
Direct text matching: the strategy used when no structured record is available.
"""

import logging
import re
from typing import Dict, Optional, Pattern, Tuple, Union

from .models import UserClaim
from .normalize import contains, normalize

logger = logging.getLogger(__name__)

# "deposit", then within 80 characters either a currency symbol (anything,
# digits included, may precede it) or the first digits, then the amount
# (optionally comma-grouped, optional pence).
DEFAULT_DEPOSIT_PATTERN = (
    r"deposit(?:[^£$]{0,80}[£$]|[^£$\d]{0,80})\s?(\d+(?:,\d{3})*(?:\.\d{2})?)"
)


def compile_deposit_pattern(pattern: Union[str, Pattern]) -> Pattern:
    """Compile a deposit pattern, requiring a capture group for the amount."""
    compiled = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern, re.IGNORECASE)
    if compiled.groups < 1:
        raise ValueError(f"Deposit pattern '{compiled.pattern}' must capture the amount in group 1")
    return compiled


class DirectMatcher:
    """Checks each claimed value for presence in the normalized document text"""

    def __init__(
        self,
        deposit_pattern: Union[str, Pattern] = DEFAULT_DEPOSIT_PATTERN,
        fuzzy_threshold: Optional[int] = None
    ):
        """
        Initialize the matcher.

        Args:
            deposit_pattern: Regex whose first group captures the deposit amount
            fuzzy_threshold: Optional rapidfuzz cut-off for name and address checks
        """
        self.deposit_pattern = compile_deposit_pattern(deposit_pattern)
        self.fuzzy_threshold = fuzzy_threshold

    def extract_deposit(self, text: str) -> Optional[str]:
        """
        Pull the deposit amount out of the document text.

        Args:
            text: Document text (normalized or raw)

        Returns:
            Amount string as written (e.g. "1,500.00"), or None
        """
        found = self.deposit_pattern.search(text or "")
        if not found:
            logger.debug("No deposit amount found in document text")
            return None
        return found.group(1)

    def match(self, claim: UserClaim, normalized_text: str) -> Tuple[Dict[str, bool], Optional[str]]:
        """
        Match every claim field against the document text.

        Name and address are compared case-insensitively. Rent and dates must
        appear exactly as typed, so "1200" does not match "1,200".

        Args:
            claim: Validated user claim
            normalized_text: Output of normalize() for the document

        Returns:
            Tuple of (field verdicts, extracted deposit or None)
        """
        text = normalize(normalized_text)

        verdicts = {
            "fullName": contains(text, claim.full_name, self.fuzzy_threshold),
            "address": contains(text, claim.address, self.fuzzy_threshold),
            "rent": claim.rent.strip() in text,
            "startDate": claim.start_date.strip() in text,
            "endDate": claim.end_date.strip() in text,
        }

        return verdicts, self.extract_deposit(text)
