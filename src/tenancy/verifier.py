"""
Tenancy verifier: structured extraction with direct-match fallback.
"""

import logging
from typing import Optional

from .comparator import compare, format_amount
from .config import (
    STRATEGY_DIRECT,
    STRATEGY_STRUCTURED,
    VerifierConfig,
)
from .exceptions import ExtractionError, VerificationUnavailable
from .extractor import ExtractionBackend, OpenAIBackend, StructuredExtractor
from .matcher import DirectMatcher
from .models import CLAIM_FIELDS, UserClaim, VerificationReport
from .normalize import normalize
from .report import NO_TEXT_ISSUE, build_report

logger = logging.getLogger(__name__)


class TenancyVerifier:
    """Verifies user tenancy claims against the text of a tenancy agreement"""

    def __init__(
        self,
        config: Optional[VerifierConfig] = None,
        backend: Optional[ExtractionBackend] = None
    ):
        """
        Initialize the verifier.

        Args:
            config: Verifier settings (default: VerifierConfig.from_env())
            backend: Extraction backend; an OpenAIBackend is built from the
                config when omitted and the strategy needs one
        """
        self.config = config or VerifierConfig.from_env()
        self.matcher = DirectMatcher(
            deposit_pattern=self.config.deposit_pattern,
            fuzzy_threshold=self.config.fuzzy_threshold
        )

        self.extractor = None
        if self.config.uses_backend:
            if backend is None:
                backend = OpenAIBackend(
                    api_key=self.config.api_key,
                    model=self.config.model,
                    temperature=self.config.temperature
                )
            self.extractor = StructuredExtractor(
                backend,
                prompts_file=self.config.prompts_file,
                timeout=self.config.extraction_timeout
            )

    @property
    def strategy(self) -> str:
        return self.config.strategy

    def verify_direct(self, claim: UserClaim, normalized_text: str) -> VerificationReport:
        """Verify using substring presence in the document text only."""
        verdicts, deposit = self.matcher.match(claim, normalized_text)
        return build_report(verdicts, deposit, strategy=STRATEGY_DIRECT)

    def verify_structured(self, claim: UserClaim, document_text: str) -> VerificationReport:
        """
        Verify against a structured record from the extraction backend.

        Raises:
            ExtractionError: If the backend fails or its response is unusable
        """
        record = self.extractor.extract(document_text)
        verdicts = compare(claim, record, self.config.fuzzy_threshold)

        if record.deposit.amount is not None:
            deposit = format_amount(record.deposit.amount)
        else:
            deposit = self.matcher.extract_deposit(normalize(document_text))

        return build_report(verdicts, deposit, extracted=record, strategy=STRATEGY_STRUCTURED)

    def verify(self, claim: UserClaim, document_text: Optional[str]) -> VerificationReport:
        """
        Verify a claim against document text.

        Structured extraction is attempted first unless the strategy is
        "direct". With "structured-with-fallback" an extraction failure falls
        back to direct matching for this request only.

        Args:
            claim: User claim
            document_text: Text of the uploaded agreement

        Returns:
            VerificationReport

        Raises:
            ValidationError: If the claim is invalid
            VerificationUnavailable: If extraction failed and fallback is disabled
        """
        claim.validate()

        normalized = normalize(document_text)
        if not normalized:
            logger.warning("Document has no text; every claim field is unmatched")
            verdicts = {name: False for name in CLAIM_FIELDS}
            return build_report(verdicts, None, extraction_issues=[NO_TEXT_ISSUE])

        if self.strategy == STRATEGY_DIRECT:
            return self.verify_direct(claim, normalized)

        try:
            return self.verify_structured(claim, document_text)
        except ExtractionError as e:
            if self.strategy == STRATEGY_STRUCTURED:
                raise VerificationUnavailable(f"Structured extraction failed: {e}") from e
            logger.warning("Structured extraction failed, falling back to direct matching: %s", e)

        return self.verify_direct(claim, normalized)
