"""
Custom exceptions for tenancy verification.
"""


class TenancyError(Exception):
    """Base exception for tenancy verification errors"""
    pass


class ValidationError(TenancyError):
    """Raised when a claim field is missing or malformed"""
    pass


class ExtractionError(TenancyError):
    """Raised when the extraction backend fails or returns an unusable response"""
    pass


class ParseError(TenancyError):
    """Raised when no text can be read from the uploaded document"""
    pass


class VerificationUnavailable(TenancyError):
    """Raised when structured extraction failed and no fallback is allowed"""
    pass
