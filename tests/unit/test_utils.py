"""Unit tests for parsing and calendar primitives."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from payroll_validation.utils import (
    calculate_actuarial_age,
    calculate_age,
    calculate_service_years,
    clean_identifier,
    decode_birth_date_from_national_id,
    decode_two_digit_year,
    extract_digits,
    extract_id_from_mixed_field,
    imss_check_digit,
    infer_sex_from_name,
    is_valid_imss_check_digit,
    name_initials,
    normalize_sex,
    parse_date,
    parse_numeric,
    strip_accents,
)


class TestParseDate:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("1985-01-31", date(1985, 1, 31)),
            ("1985/01/31", date(1985, 1, 31)),
            ("31/01/1985", date(1985, 1, 31)),
            ("31-01-1985", date(1985, 1, 31)),
            ("1/2/1985", date(1985, 2, 1)),
            ("1985-01-31T10:30:00", date(1985, 1, 31)),
            (" 2010-01-01 ", date(2010, 1, 1)),
            (45292, date(2024, 1, 1)),
            ("45292", date(2024, 1, 1)),
            (datetime(2001, 7, 4, 12, 0), date(2001, 7, 4)),
            (date(2001, 7, 4), date(2001, 7, 4)),
        ],
    )
    def test_accepted_layouts(self, value, expected):
        assert parse_date(value) == expected

    @pytest.mark.parametrize(
        "value",
        ["31/02/2020", "2020-13-01", "", "   ", "abc", "85-01-31", "1985-01/31", None, True, 100, float("nan")],
    )
    def test_rejected_values(self, value):
        assert parse_date(value) is None


class TestParseNumeric:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("$12,345.50", 12345.5),
            (" 1 000 ", 1000.0),
            ("7467.9", 7467.9),
            (5, 5.0),
            (2.5, 2.5),
        ],
    )
    def test_parses(self, value, expected):
        assert parse_numeric(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", [None, "", "abc", "12a", True, float("nan"), float("inf")])
    def test_rejects(self, value):
        assert parse_numeric(value) is None


class TestIdentifiers:
    def test_clean_identifier(self):
        assert clean_identifier(" gode 900501 hj3 ") == "GODE900501HJ3"
        assert clean_identifier("   ") is None
        assert clean_identifier(None) is None

    def test_extract_embedded_tax_id(self):
        assert extract_id_from_mixed_field("RFC: gode900501hj3 (ver)") == "GODE900501HJ3"
        assert extract_id_from_mixed_field("1990-05-01") is None
        assert extract_id_from_mixed_field("short") is None

    def test_extract_digits(self):
        assert extract_digits("12-08-90-0123-9") == "12089001239"
        assert extract_digits("n/a") is None

    @pytest.mark.parametrize(
        "identifier, expected",
        [
            ("GODE850101HJ3", date(1985, 1, 1)),
            ("GODE300101HJ3", date(2030, 1, 1)),
            ("GODE310101HJ3", date(1931, 1, 1)),
            ("GODE900501HJCMZD09", date(1990, 5, 1)),
        ],
    )
    def test_decode_birth_date(self, identifier, expected):
        assert decode_birth_date_from_national_id(identifier) == expected

    def test_decode_respects_century_threshold(self):
        assert decode_birth_date_from_national_id("GODE300101HJ3", century_threshold=29) == date(1930, 1, 1)
        assert decode_two_digit_year(30) == 2030
        assert decode_two_digit_year(31) == 1931

    @pytest.mark.parametrize("identifier", ["GODE851301HJ3", "GODE850230HJ3", "GODEAB0101HJ3", "GODE85", None])
    def test_decode_invalid_segment(self, identifier):
        assert decode_birth_date_from_national_id(identifier) is None


class TestAges:
    def test_age_counts_completed_years(self):
        assert calculate_age(date(1990, 5, 1), date(2024, 4, 30)) == 33
        assert calculate_age(date(1990, 5, 1), date(2024, 5, 1)) == 34

    def test_age_never_negative(self):
        assert calculate_age(date(2030, 1, 1), date(2024, 12, 31)) == 0

    def test_service_years(self):
        assert calculate_service_years(date(2010, 1, 1), date(2024, 12, 31)) == 14

    def test_actuarial_age_adds_completed_months(self):
        assert calculate_actuarial_age(date(1990, 5, 1), date(2024, 12, 31)) == pytest.approx(34 + 7 / 12, abs=1e-4)
        assert calculate_actuarial_age(date(1990, 5, 15), date(2024, 6, 14)) == pytest.approx(34.0)


class TestSex:
    @pytest.mark.parametrize(
        "value, expected",
        [("h", "H"), ("Masculino", "H"), ("male", "H"), ("M", "M"), ("mujer", "M"), ("F", "M"), ("x", None), (None, None)],
    )
    def test_normalize_sex(self, value, expected):
        assert normalize_sex(value) == expected

    def test_infer_sex_from_given_name(self):
        assert infer_sex_from_name("GOMEZ DIAZ EDUARDO") == "H"
        assert infer_sex_from_name("Lopez Perez, Maria") == "M"
        assert infer_sex_from_name("XOCHITLQUETZAL") is None
        assert infer_sex_from_name(None) is None

    def test_name_initials(self):
        assert name_initials("Gomez Diaz Eduardo") == {"G", "D", "E"}
        assert name_initials("") == set()


class TestImssCheckDigit:
    @pytest.mark.parametrize("first_ten, expected", [("1208900123", 9), ("1288650123", 3), ("0000000000", 0)])
    def test_known_vectors(self, first_ten, expected):
        assert imss_check_digit(first_ten) == expected

    @pytest.mark.parametrize("value", ["123", "12345678901", "12089001A3"])
    def test_requires_ten_digits(self, value):
        with pytest.raises(ValueError):
            imss_check_digit(value)

    def test_is_valid(self):
        assert is_valid_imss_check_digit("12089001239")
        assert not is_valid_imss_check_digit("12089001238")
        assert not is_valid_imss_check_digit("1208900123")

    @pytest.mark.parametrize("position", range(10))
    def test_any_single_digit_change_invalidates(self, position):
        digits = list("12089001239")
        digits[position] = str((int(digits[position]) + 1) % 10)
        assert not is_valid_imss_check_digit("".join(digits))


@pytest.mark.parametrize(
    "text, expected",
    [("Jubilación", "Jubilacion"), ("AÑO", "ANO"), ("Ünico Él", "Unico El"), ("plain", "plain")],
)
def test_strip_accents(text, expected):
    assert strip_accents(text) == expected
