from __future__ import annotations

from typing import Optional

import phonenumbers
from phonenumbers import PhoneNumberType

from ..base import PhoneNormalizer, PhoneRecord, matches_e164
from ..utils.logger import get_logger, log_event
from .basic_normalizer import BasicPhoneNormalizer


# Map PhoneNumberType enum values to string names
PHONE_TYPE_MAP = {
    PhoneNumberType.FIXED_LINE: "FIXED_LINE",
    PhoneNumberType.MOBILE: "MOBILE",
    PhoneNumberType.FIXED_LINE_OR_MOBILE: "FIXED_LINE_OR_MOBILE",
    PhoneNumberType.TOLL_FREE: "TOLL_FREE",
    PhoneNumberType.PREMIUM_RATE: "PREMIUM_RATE",
    PhoneNumberType.SHARED_COST: "SHARED_COST",
    PhoneNumberType.VOIP: "VOIP",
    PhoneNumberType.PERSONAL_NUMBER: "PERSONAL_NUMBER",
    PhoneNumberType.PAGER: "PAGER",
    PhoneNumberType.UAN: "UAN",
    PhoneNumberType.VOICEMAIL: "VOICEMAIL",
}

NON_GEO_REGION = phonenumbers.REGION_CODE_FOR_NON_GEO_ENTITY


def parse_number(phone: str, region: Optional[str] = None) -> Optional[phonenumbers.PhoneNumber]:
    """Parse ``phone`` with libphonenumber, returning None when it cannot."""
    if not isinstance(phone, str) or not phone.strip():
        return None
    try:
        return phonenumbers.parse(phone.strip(), region)
    except phonenumbers.NumberParseException:
        return None


def number_type_name(parsed: phonenumbers.PhoneNumber) -> str:
    return PHONE_TYPE_MAP.get(phonenumbers.number_type(parsed), "UNKNOWN")


def is_non_geographic(parsed: phonenumbers.PhoneNumber) -> bool:
    """True when the calling code belongs to a non-geographic entity (+800, +882, ...)."""
    return phonenumbers.region_code_for_country_code(parsed.country_code) == NON_GEO_REGION


class LibPhoneNumberNormalizer(PhoneNormalizer):
    """Normalizer based on Google's libphonenumber.

    Falls back to ``BasicPhoneNormalizer`` whenever the number cannot be
    parsed or libphonenumber considers it invalid.
    """

    source_name = "libphonenumber"

    def __init__(self, default_region: Optional[str] = None) -> None:
        self.default_region = default_region
        self.fallback = BasicPhoneNormalizer()
        self.logger = get_logger("sms_verify.normalizer.libphonenumber")

    def normalize(self, phone: str) -> str:
        parsed = parse_number(phone, self.default_region)
        if parsed is not None and phonenumbers.is_valid_number(parsed):
            return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)

        log_event(
            self.logger,
            level=20,
            message="libphonenumber could not format number, using basic normalization",
        )
        return self.fallback.normalize(phone)

    def is_valid(self, phone: str) -> bool:
        parsed = parse_number(phone, self.default_region)
        if parsed is None:
            return matches_e164(phone)
        return phonenumbers.is_valid_number(parsed)

    def parse(self, phone: str) -> PhoneRecord:
        e164 = self.normalize(phone)
        parsed = parse_number(e164, self.default_region)
        if parsed is None:
            return PhoneRecord(e164=e164, valid=matches_e164(e164))

        return PhoneRecord(
            e164=e164,
            country_code=parsed.country_code,
            national_number=phonenumbers.national_significant_number(parsed),
            region=phonenumbers.region_code_for_number(parsed),
            non_geographic=is_non_geographic(parsed),
            number_type=number_type_name(parsed),
            valid=phonenumbers.is_valid_number(parsed),
        )
