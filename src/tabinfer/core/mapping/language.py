"""
Language selection for field-mapping detection.

tabinfer does not ship a language identifier. Callers plug one in through
the :class:`LanguageDetector` protocol; this module only prepares the text
it receives and interprets its answer.
"""

from dataclasses import dataclass
import logging
import re
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence

from tabinfer.core.mapping.patterns import DEFAULT_LANGUAGE

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("eng", "deu", "fra", "spa", "ita", "nld", "por")

LANGUAGE_NAMES = {
    "eng": "English",
    "deu": "German",
    "fra": "French",
    "spa": "Spanish",
    "ita": "Italian",
    "nld": "Dutch",
    "por": "Portuguese",
    "und": "Unknown",
}

MIN_TEXT_LENGTH = 20
RELIABILITY_THRESHOLD = 0.5

_NON_TEXT_PATTERNS = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^[^\s@]+@[^\s@]+\.[a-z]{2,}$",
        r"^https?://",
        r"^\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}:\d{2})?",
        r"^-?\d+(\.\d+)?$",
        r"^-?\d+\.\d+,\s?-?\d+\.\d+$",
        r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
        r"^[\d\s./-]+$",
    )
)


@dataclass(frozen=True)
class LanguageDetectionResult:
    """Answer of a language detector."""

    code: str
    confidence: float
    name: Optional[str] = None

    @property
    def is_reliable(self) -> bool:
        return self.code != "und" and self.confidence >= RELIABILITY_THRESHOLD

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name or LANGUAGE_NAMES.get(self.code, self.code),
            "confidence": self.confidence,
            "is_reliable": self.is_reliable,
        }


UNDETERMINED = LanguageDetectionResult(code="und", confidence=0.0, name="Unknown")


class LanguageDetector(Protocol):
    def __call__(self, text: str) -> LanguageDetectionResult: ...


def is_supported_language(code: Optional[str]) -> bool:
    return code in SUPPORTED_LANGUAGES


def is_non_text_value(value: str) -> bool:
    """Emails, URLs, dates, numbers, coordinates and ids carry no language."""
    return any(pattern.search(value) for pattern in _NON_TEXT_PATTERNS)


def extract_text_for_language_detection(
    rows: Sequence[Mapping[str, Any]], headers: Sequence[str]
) -> str:
    """
    Concatenate headers and string cells that look like natural language.

    Strings shorter than three characters and values such as emails, URLs,
    dates or identifiers are left out.
    """
    parts = [h for h in headers if len(h) > 2 and not is_non_text_value(h)]
    for row in rows:
        for value in row.values():
            if not isinstance(value, str):
                continue
            trimmed = value.strip()
            if len(trimmed) >= 3 and not is_non_text_value(trimmed):
                parts.append(value)
    return " ".join(parts)


def resolve_language(
    rows: Sequence[Mapping[str, Any]],
    headers: Sequence[str],
    detector: Optional[LanguageDetector] = None,
    default: str = DEFAULT_LANGUAGE,
) -> LanguageDetectionResult:
    """
    Run ``detector`` over the sample text and fall back to ``default``.

    The fallback applies when no detector is given, when there is too
    little text, and when the answer is unreliable or unsupported.
    """
    fallback = LanguageDetectionResult(
        code=default, confidence=0.0, name=LANGUAGE_NAMES.get(default)
    )
    if detector is None:
        return fallback

    text = extract_text_for_language_detection(rows, headers)
    if len(text) < MIN_TEXT_LENGTH:
        logger.debug("Only %d characters of text, using %s", len(text), default)
        return fallback

    result = detector(text)
    if not result.is_reliable or not is_supported_language(result.code):
        logger.info(
            "Language detection unreliable (%s, %.2f), using %s",
            result.code,
            result.confidence,
            default,
        )
        return fallback
    return result
