"""
Text normalization and containment helpers shared by the matchers.
"""

from typing import Optional

from rapidfuzz import fuzz


def normalize(text: Optional[str]) -> str:
    """Lower-case and trim document text. Inner whitespace is left alone."""
    if not text:
        return ""
    return text.lower().strip()


def contains(haystack: str, needle: str, fuzzy_threshold: Optional[int] = None) -> bool:
    """
    Case-insensitive containment of ``needle`` in ``haystack``.

    With a ``fuzzy_threshold`` (0-100) a rapidfuzz partial_ratio at or above
    the threshold also counts, which tolerates OCR noise such as "Jane D0e".

    Args:
        haystack: Text to search in
        needle: Value to look for; trimmed before comparison
        fuzzy_threshold: Optional partial_ratio cut-off

    Returns:
        True if the needle was found
    """
    haystack = normalize(haystack)
    needle = normalize(needle)

    if needle in haystack:
        return True

    if fuzzy_threshold is None or not needle or not haystack:
        return False

    return fuzz.partial_ratio(needle, haystack) >= fuzzy_threshold
