from __future__ import annotations

import re

from ..base import PhoneNormalizer, matches_e164


_NON_DIGITS = re.compile(r"\D")


class BasicPhoneNormalizer(PhoneNormalizer):
    """Digit-stripping normalizer that assumes North American numbers.

    Normalization is lossy and never rejects input; validity is a separate
    regex and length check.
    """

    source_name = "basic"

    def normalize(self, phone: str) -> str:
        """Normalize to E.164.

        - 10 digits: prefixed with ``+1``.
        - 11 digits starting with ``1``: prefixed with ``+``.
        - Anything else: returned unchanged if it already starts with ``+``,
          otherwise ``+`` followed by the stripped digits.
        """
        raw = phone if isinstance(phone, str) else ""
        cleaned = _NON_DIGITS.sub("", raw)

        if len(cleaned) == 10:
            return f"+1{cleaned}"
        if len(cleaned) == 11 and cleaned.startswith("1"):
            return f"+{cleaned}"

        return raw if raw.startswith("+") else f"+{cleaned}"

    def is_valid(self, phone: str) -> bool:
        return matches_e164(phone)
