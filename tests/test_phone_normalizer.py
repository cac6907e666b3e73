"""Tests for phone normalization strategies."""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from sms_verify.api_manager.base import matches_e164
from sms_verify.api_manager.normalizers import BasicPhoneNormalizer, LibPhoneNumberNormalizer


class TestBasicPhoneNormalizer:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("2069084172", "+12069084172"),
            ("(206) 908-4172", "+12069084172"),
            ("1-206-908-4172", "+12069084172"),
            ("+1 (206) 908-4172", "+12069084172"),
            ("447400123456", "+447400123456"),
        ],
    )
    def test_normalize(self, raw, expected):
        assert BasicPhoneNormalizer().normalize(raw) == expected

    def test_plus_prefixed_input_is_returned_unchanged(self):
        assert BasicPhoneNormalizer().normalize("+447400123456") == "+447400123456"
        assert BasicPhoneNormalizer().normalize("+44 7400 123456") == "+44 7400 123456"

    def test_canonical_number_is_idempotent(self):
        normalizer = BasicPhoneNormalizer()
        once = normalizer.normalize("206.908.4172")
        assert normalizer.normalize(once) == once

    @pytest.mark.parametrize(
        "phone",
        ["+12069084172", "+447400123456", "+33612345678", "+8613800138000", "+4915112345678", "+61412345678"],
    )
    def test_e164_input_is_unchanged(self, phone):
        normalizer = BasicPhoneNormalizer()
        assert normalizer.normalize(phone) == phone
        assert normalizer.normalize(normalizer.normalize(phone)) == phone

    @pytest.mark.parametrize(
        "phone, rewritten",
        [("+2069084172", "+12069084172"), ("+3312345678", "+13312345678")],
    )
    def test_ten_digit_e164_input_is_treated_as_north_american(self, phone, rewritten):
        # Digit counting runs before the "+" check, so a valid 10-digit
        # E.164 number gets a +1 prefix.
        normalizer = BasicPhoneNormalizer()
        assert normalizer.is_valid(phone) is True
        assert normalizer.normalize(phone) == rewritten

    @pytest.mark.parametrize("raw, expected", [("", "+"), ("abc", "+"), ("123abc456", "+123456")])
    def test_degenerate_input_never_raises(self, raw, expected):
        assert BasicPhoneNormalizer().normalize(raw) == expected

    def test_non_string_input(self):
        assert BasicPhoneNormalizer().normalize(None) == "+"

    @pytest.mark.parametrize("phone", ["+12069084172", "+447400123456", "+123456"])
    def test_valid_numbers(self, phone):
        assert BasicPhoneNormalizer().is_valid(phone) is True

    @pytest.mark.parametrize(
        "phone",
        ["", "+", "+12345", "+0123456789", "12069084172", "+1206908417a", "+1234567890123456"],
    )
    def test_invalid_numbers(self, phone):
        assert BasicPhoneNormalizer().is_valid(phone) is False

    def test_parse_wraps_result(self):
        record = BasicPhoneNormalizer().parse("2069084172")
        assert record.e164 == "+12069084172"
        assert record.valid is True
        assert record.country_code is None


def test_matches_e164_rejects_non_strings():
    assert matches_e164(None) is False
    assert matches_e164(12069084172) is False


class TestLibPhoneNumberNormalizer:
    def test_formats_international_number(self):
        assert LibPhoneNumberNormalizer().normalize("+44 7400 123456") == "+447400123456"

    def test_uses_default_region_for_national_input(self):
        normalizer = LibPhoneNumberNormalizer(default_region="US")
        assert normalizer.normalize("(206) 908-4172") == "+12069084172"

    def test_falls_back_to_basic_without_region(self):
        assert LibPhoneNumberNormalizer().normalize("(206) 908-4172") == "+12069084172"

    def test_falls_back_to_basic_for_invalid_number(self):
        normalizer = LibPhoneNumberNormalizer()
        normalized = normalizer.normalize("+1 123 456 7890")
        assert normalized == "+11234567890"
        assert normalizer.is_valid(normalized) is False

    def test_is_valid(self):
        normalizer = LibPhoneNumberNormalizer()
        assert normalizer.is_valid("+12069084172") is True
        assert normalizer.is_valid("garbage") is False
        assert normalizer.is_valid("") is False

    def test_parse_fills_metadata(self):
        record = LibPhoneNumberNormalizer().parse("+44 7400 123456")
        assert record.e164 == "+447400123456"
        assert record.country_code == 44
        assert record.national_number == "7400123456"
        assert record.region == "GB"
        assert record.non_geographic is False
        assert record.number_type == "MOBILE"
        assert record.valid is True

    def test_parse_flags_non_geographic_numbers(self):
        record = LibPhoneNumberNormalizer().parse("+80012345678")
        assert record.region == "001"
        assert record.non_geographic is True
