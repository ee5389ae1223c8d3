"""Tests for identity string comparisons."""

import pytest

from ridesignal.models.telemetry import Address
from ridesignal.processor.similarity import (
    address_similarity,
    email_similarity,
    last_name,
    levenshtein_distance,
    name_similarity,
    normalize_phone,
    phones_match,
    set_overlap,
    string_similarity,
)


class TestLevenshtein:
    @pytest.mark.parametrize(
        "s1, s2, expected",
        [("kitten", "sitting", 3), ("", "abc", 3), ("abc", "", 3), ("santos", "santos", 0), ("reyes", "reyez", 1)],
    )
    def test_distance(self, s1, s2, expected):
        assert levenshtein_distance(s1, s2) == expected

    def test_empty_strings_are_identical(self):
        assert string_similarity("", "") == 100.0

    def test_similarity_scale(self):
        assert string_similarity("abcd", "abcx") == pytest.approx(75.0)
        assert string_similarity("abc", "xyz") == 0.0


class TestNames:
    def test_case_and_whitespace_insensitive(self):
        assert name_similarity("Juan  Dela Cruz", "juan dela cruz") == 100.0

    def test_missing_name_is_no_evidence(self):
        assert name_similarity(None, "Juan") is None
        assert name_similarity("   ", "Juan") is None

    def test_last_name(self):
        assert last_name("Maria Clara Santos") == "santos"
        assert last_name(None) is None


class TestPhones:
    @pytest.mark.parametrize(
        "raw",
        [
            "+639171234567",
            "09171234567",
            "639171234567",
            "+63 917 123 4567",
            "+63 0917 123 4567",
            "9171234567",
            "0917-123-4567",
        ],
    )
    def test_philippine_formats_normalize_equal(self, raw):
        assert normalize_phone(raw) == "+639171234567"

    def test_international_and_local_match(self):
        assert phones_match("+639171234567", "09171234567") is True

    def test_trunk_zero_after_country_code(self):
        assert phones_match("+63 0917 123 4567", "09171234567") is True

    def test_different_numbers(self):
        assert phones_match("09171234567", "09181234567") is False

    def test_missing_phone(self):
        assert normalize_phone("") is None
        assert normalize_phone("n/a") is None
        assert phones_match(None, "09171234567") is None

    def test_foreign_number_keeps_digits(self):
        assert normalize_phone("+1 (415) 555-0100") == "+14155550100"


class TestEmails:
    def test_same_address(self):
        assert email_similarity("Juan@Gmail.com", "juan@gmail.com") == 100.0

    def test_different_domains_score_zero(self):
        assert email_similarity("juan@gmail.com", "juan@yahoo.com") == 0.0

    def test_local_part_similarity(self):
        assert email_similarity("juan1@gmail.com", "juan2@gmail.com") == pytest.approx(80.0)

    def test_malformed_scores_zero(self):
        assert email_similarity("not-an-email", "juan@gmail.com") == 0.0

    def test_missing_is_none(self):
        assert email_similarity(None, "juan@gmail.com") is None


class TestAddresses:
    def test_identical(self):
        address = Address(street="123 Shaw Boulevard", barangay="Kapitolyo", city="Pasig")
        assert address_similarity(address, address) == 100.0

    def test_only_shared_fields_count(self):
        a = Address(barangay="Kapitolyo", city="Pasig")
        b = Address(street="1 Shaw Blvd", barangay="kapitolyo", city="Makati")
        # street absent on one side; barangay matches, city does not
        assert address_similarity(a, b) == pytest.approx(50.0)

    def test_no_comparable_fields(self):
        assert address_similarity(Address(street="x"), Address(city="Pasig")) is None
        assert address_similarity(None, Address(city="Pasig")) is None


class TestSetOverlap:
    def test_overlap_over_larger_set(self):
        assert set_overlap(["a", "b"], ["b", "c", "d", "e"]) == pytest.approx(0.25)

    def test_missing_or_empty(self):
        assert set_overlap(None, ["a"]) is None
        assert set_overlap([], []) is None
        assert set_overlap(["a"], []) == 0.0
