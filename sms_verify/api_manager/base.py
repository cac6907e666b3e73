from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


# Canonical E.164: leading +, country code 1-9, up to 15 digits in total.
E164_REGEX = re.compile(r"^\+[1-9]\d{1,14}$")
E164_MIN_LENGTH = 7
E164_MAX_LENGTH = 16


def matches_e164(phone: Optional[str]) -> bool:
    """Return True if ``phone`` is a canonical E.164 string of 7-16 chars."""
    if not isinstance(phone, str):
        return False
    return bool(E164_REGEX.match(phone)) and E164_MIN_LENGTH <= len(phone) <= E164_MAX_LENGTH


@dataclass(frozen=True)
class PhoneRecord:
    """Phone number derived from raw input.

    Attributes:
        e164: Canonical dialable string (e.g. ``+12069084172``).
        country_code: Calling code, when a metadata provider parsed the number.
        national_number: National significant number as a digit string.
        region: ISO region code (``US``, ``GB``, ``001`` for non-geographic).
        non_geographic: Whether the calling code belongs to a non-geographic
            entity (global services such as +800 or +882).
        number_type: Number type name (MOBILE, FIXED_LINE, VOIP, ...).
        valid: Whether the provider considers the number valid.
    """

    e164: str
    country_code: Optional[int] = None
    national_number: Optional[str] = None
    region: Optional[str] = None
    non_geographic: Optional[bool] = None
    number_type: Optional[str] = None
    valid: Optional[bool] = None


@dataclass(frozen=True)
class VoipClassification:
    """Verdict of a VoIP classifier.

    Attributes:
        is_voip: Whether the number should be rejected as VoIP.
        rule: Name of the rule that produced the verdict (diagnostics only).
    """

    is_voip: bool
    rule: str


class PhoneNormalizer(ABC):
    """Abstract base class for phone normalization strategies."""

    source_name = "base"

    @abstractmethod
    def normalize(self, phone: str) -> str:
        """Turn arbitrary input into a canonical dialable number. Never raises."""
        raise NotImplementedError

    @abstractmethod
    def is_valid(self, phone: str) -> bool:
        """Check format validity. Returns False rather than raising."""
        raise NotImplementedError

    def parse(self, phone: str) -> PhoneRecord:
        """Normalize ``phone`` and wrap it in a ``PhoneRecord``."""
        e164 = self.normalize(phone)
        return PhoneRecord(e164=e164, valid=self.is_valid(e164))


class VoipClassifier(ABC):
    """Abstract base class for VoIP detection strategies."""

    source_name = "base"

    @abstractmethod
    def classify(self, phone: str) -> VoipClassification:
        """Decide whether an E.164 number should be rejected as VoIP."""
        raise NotImplementedError
