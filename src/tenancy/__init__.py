"""
Tenancy Verifier Package

Checks a tenant's self-reported tenancy details against the text of their
tenancy agreement, using LLM extraction with a direct text-matching fallback.
"""

from .exceptions import (
    TenancyError,
    ValidationError,
    ExtractionError,
    ParseError,
    VerificationUnavailable
)
from .config import VerifierConfig
from .extractor import ExtractionBackend, OpenAIBackend, StructuredExtractor
from .matcher import DirectMatcher
from .models import CLAIM_FIELDS, ExtractedRecord, UserClaim, VerificationReport
from .verifier import TenancyVerifier

__version__ = "1.0.0"
__all__ = [
    "TenancyError",
    "ValidationError",
    "ExtractionError",
    "ParseError",
    "VerificationUnavailable",
    "VerifierConfig",
    "ExtractionBackend",
    "OpenAIBackend",
    "StructuredExtractor",
    "DirectMatcher",
    "CLAIM_FIELDS",
    "ExtractedRecord",
    "UserClaim",
    "VerificationReport",
    "TenancyVerifier",
]
