"""Local VoIP heuristics on top of libphonenumber metadata.

The cascade is evaluated in a fixed order and the first rule with an opinion
wins. Pattern rules (repeated, ascending and low-diversity digits) flag some
legitimate mobile numbers as VoIP; there is no confidence score or override.
"""

from __future__ import annotations

import re

import phonenumbers

from ..base import VoipClassification, VoipClassifier
from ..normalizers.libphone_normalizer import is_non_geographic, number_type_name, parse_number
from ..utils.logger import get_logger, log_event


# Leading three digits of US national numbers treated as VoIP-prone.
RESERVED_PREFIXES = frozenset(
    [
        "800", "888", "877", "866", "855", "844", "833",  # toll-free
        "900", "976",  # premium rate
        "700",  # personal communication services
        "500", "521", "522", "523", "524", "525", "526", "527", "528", "529",
        "600", "601", "602", "603", "604", "605", "606", "607", "608", "609",
    ]
)

VOIP_NUMBER_TYPES = frozenset(["VOIP", "PREMIUM_RATE", "TOLL_FREE", "SHARED_COST"])
SAFE_NUMBER_TYPES = frozenset(["MOBILE", "FIXED_LINE"])

REPEATED_DIGITS = re.compile(r"(\d)\1{2,}")
ASCENDING_DIGITS = re.compile(r"(?:0(?=1)|1(?=2)|2(?=3)|3(?=4)|4(?=5)|5(?=6)|6(?=7)|7(?=8)|8(?=9)){3,}")
QUADRUPLE_ENDINGS = tuple(str(d) * 4 for d in range(10))

LOW_DIVERSITY_MIN_LENGTH = 7
LOW_DIVERSITY_MAX_DISTINCT = 3


class HeuristicVoipClassifier(VoipClassifier):
    """VoIP classifier that never leaves the process.

    Args:
        full_metadata: When True, consult libphonenumber's number-type
            classification before falling back to digit-pattern rules.
    """

    source_name = "libphonenumber"

    def __init__(self, full_metadata: bool = False) -> None:
        self.full_metadata = full_metadata
        self.logger = get_logger("sms_verify.voip.heuristic")

    def classify(self, phone: str) -> VoipClassification:
        parsed = parse_number(phone)
        if parsed is None:
            log_event(self.logger, 30, "Could not parse phone number for VoIP heuristics")
            return VoipClassification(is_voip=False, rule="unparsable")

        if not phonenumbers.is_valid_number(parsed):
            log_event(self.logger, 30, "Phone number is not valid according to libphonenumber")
            return VoipClassification(is_voip=False, rule="invalid_number")

        national = phonenumbers.national_significant_number(parsed)
        region = phonenumbers.region_code_for_number(parsed)

        verdict = self._evaluate(parsed, national, region)
        log_event(
            self.logger,
            10,
            "VoIP heuristic verdict",
            extra={"is_voip": verdict.is_voip, "rule": verdict.rule, "region": region},
        )
        return verdict

    def _evaluate(self, parsed: phonenumbers.PhoneNumber, national: str, region: str) -> VoipClassification:
        if region == "US" and national[:3] in RESERVED_PREFIXES:
            return VoipClassification(is_voip=True, rule="reserved_prefix")

        if is_non_geographic(parsed):
            return VoipClassification(is_voip=True, rule="non_geographic")

        if self.full_metadata:
            number_type = number_type_name(parsed)
            if number_type in VOIP_NUMBER_TYPES:
                return VoipClassification(is_voip=True, rule=f"number_type:{number_type}")
            if number_type in SAFE_NUMBER_TYPES:
                return VoipClassification(is_voip=False, rule=f"number_type:{number_type}")

        if REPEATED_DIGITS.search(national):
            return VoipClassification(is_voip=True, rule="repeated_digits")

        if ASCENDING_DIGITS.search(national):
            return VoipClassification(is_voip=True, rule="ascending_digits")

        if national.endswith(QUADRUPLE_ENDINGS):
            return VoipClassification(is_voip=True, rule="quadruple_ending")

        if len(national) >= LOW_DIVERSITY_MIN_LENGTH and len(set(national)) <= LOW_DIVERSITY_MAX_DISTINCT:
            return VoipClassification(is_voip=True, rule="low_digit_diversity")

        return VoipClassification(is_voip=False, rule="no_match")
