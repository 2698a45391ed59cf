"""
Parsing and calendar primitives shared by every validator.

All functions are pure and total: malformed input yields ``None`` (or a
neutral value) instead of raising, so a single bad cell can never take a
validator down.
"""

from __future__ import annotations

import math
import re
import unicodedata
from datetime import date, datetime, timedelta
from typing import Any, Optional, Set

from .constants import COMMON_FEMALE_NAMES, COMMON_MALE_NAMES

# Spreadsheet serials: day 1 is 1900-01-01 and day 60 is the phantom
# 1900-02-29, so real dates after it map from 1899-12-30.
_SERIAL_EPOCH = date(1899, 12, 30)
_SERIAL_MIN = 25000  # 1968-06-12
_SERIAL_MAX = 60000  # 2064-04-08

_YEAR_FIRST = re.compile(r"^(\d{4})([-/])(\d{1,2})\2(\d{1,2})(?:[T ]\d{1,2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)?$")
_YEAR_LAST = re.compile(r"^(\d{1,2})([-/])(\d{1,2})\2(\d{4})$")
_NUMERIC_SERIAL = re.compile(r"^\d+(?:\.\d+)?$")

TAX_ID_PATTERN = re.compile(r"[A-ZÑ&]{3,4}\d{6}[A-Z0-9]{3}")
_NUMERIC_STRIP = re.compile(r"[$,\s]")
_NON_DIGITS = re.compile(r"\D")

_SEX_ALIASES = {
    "H": "H",
    "HOMBRE": "H",
    "MASCULINO": "H",
    "MALE": "H",
    "M": "M",
    "MUJER": "M",
    "F": "M",
    "FEMENINO": "M",
    "FEMALE": "M",
}


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _from_serial(serial: float) -> Optional[date]:
    if not math.isfinite(serial):
        return None
    whole = int(serial)
    if whole < _SERIAL_MIN or whole > _SERIAL_MAX:
        return None
    return _SERIAL_EPOCH + timedelta(days=whole)


def parse_date(value: Any) -> Optional[date]:
    """Parse a date from the layouts seen in payroll spreadsheets.

    Accepts ``date``/``datetime`` objects, ISO ``YYYY-MM-DD`` (optionally
    with a time part), ``YYYY/MM/DD``, day-first ``DD/MM/YYYY`` and
    ``DD-MM-YYYY`` (one or two digit day and month), and spreadsheet serial
    numbers. Mixed separators, two-digit years and calendar-invalid dates
    return ``None``.

    Examples:
        >>> parse_date("1985-01-31")
        datetime.date(1985, 1, 31)
        >>> parse_date("31/02/2020") is None
        True
    """
    try:
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, (int, float)):
            return _from_serial(float(value))

        text = str(value).strip()
        if not text:
            return None

        if _NUMERIC_SERIAL.match(text):
            return _from_serial(float(text))

        match = _YEAR_FIRST.match(text)
        if match:
            return _safe_date(int(match.group(1)), int(match.group(3)), int(match.group(4)))

        match = _YEAR_LAST.match(text)
        if match:
            return _safe_date(int(match.group(4)), int(match.group(3)), int(match.group(1)))
    except (TypeError, ValueError, OverflowError):
        return None
    return None


def parse_numeric(value: Any) -> Optional[float]:
    """Parse a monetary/numeric cell, stripping ``$``, thousands commas and spaces."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None

    text = _NUMERIC_STRIP.sub("", str(value))
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def clean_identifier(value: Any) -> Optional[str]:
    """Uppercase and strip an identifier cell; blank cells become ``None``."""
    if value is None:
        return None
    text = re.sub(r"\s+", "", str(value)).upper()
    return text or None


def extract_id_from_mixed_field(value: Any) -> Optional[str]:
    """Find a tax-ID-shaped token embedded in free text.

    Spreadsheets sometimes carry the RFC in the birth-date column or inside
    a name cell; this returns the first embedded match, uppercased.
    """
    if value is None:
        return None
    text = str(value).upper()
    if len(text) < 10:
        return None
    match = TAX_ID_PATTERN.search(text)
    return match.group(0) if match else None


def decode_birth_date_from_national_id(value: Any, century_threshold: int = 30) -> Optional[date]:
    """Decode the YYMMDD birth segment at offset 4 of an RFC or CURP.

    Two-digit years at or below ``century_threshold`` map to the 2000s,
    everything else to the 1900s. Invalid months or days return ``None``.
    """
    identifier = clean_identifier(value)
    if identifier is None or len(identifier) < 10:
        return None
    segment = identifier[4:10]
    if not segment.isdigit():
        return None
    yy, mm, dd = int(segment[0:2]), int(segment[2:4]), int(segment[4:6])
    year = 2000 + yy if yy <= century_threshold else 1900 + yy
    return _safe_date(year, mm, dd)


def decode_two_digit_year(yy: int, century_threshold: int = 30) -> int:
    return 2000 + yy if yy <= century_threshold else 1900 + yy


def calculate_age(birth_date: date, on: date) -> int:
    """Completed years between ``birth_date`` and ``on``; never negative."""
    years = on.year - birth_date.year
    if (on.month, on.day) < (birth_date.month, birth_date.day):
        years -= 1
    return max(0, years)


def calculate_service_years(hire_date: date, on: date) -> int:
    """Completed years of service; never negative."""
    return calculate_age(hire_date, on)


def calculate_actuarial_age(birth_date: date, on: date) -> float:
    """Age in years including completed months as a fraction."""
    years = calculate_age(birth_date, on)
    months = (on.year - birth_date.year) * 12 + (on.month - birth_date.month)
    if on.day < birth_date.day:
        months -= 1
    extra_months = max(0, months - years * 12)
    return round(years + extra_months / 12.0, 4)


def days_between(a: date, b: date) -> int:
    return abs((a - b).days)


def strip_accents(text: str) -> str:
    """Drop diacritics ('Jubilación' -> 'Jubilacion', 'Ñ' -> 'N')."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def normalize_sex(value: Any) -> Optional[str]:
    """Map declared sex spellings onto ``H`` (hombre) or ``M`` (mujer)."""
    if value is None:
        return None
    return _SEX_ALIASES.get(str(value).strip().upper())


def name_tokens(name: Optional[str]) -> list:
    if not name:
        return []
    return [t for t in re.split(r"[\s,.]+", name.upper()) if t]


def name_initials(name: Optional[str]) -> Set[str]:
    return {token[0] for token in name_tokens(name)}


def infer_sex_from_name(name: Optional[str]) -> Optional[str]:
    """Guess ``H``/``M`` from the first recognizable given name, if any."""
    for token in name_tokens(name):
        if token in COMMON_FEMALE_NAMES:
            return "M"
        if token in COMMON_MALE_NAMES:
            return "H"
    return None


def extract_digits(value: Any) -> Optional[str]:
    if value is None:
        return None
    digits = _NON_DIGITS.sub("", str(value))
    return digits or None


def imss_check_digit(first_ten: str) -> int:
    """Weighted modulo-10 check digit of an IMSS number.

    Digits are weighted 1, 2, 1, 2, ... from the left, products above 9 are
    folded (digits summed) and the check digit is ``(10 - sum % 10) % 10``.
    """
    if len(first_ten) != 10 or not first_ten.isdigit():
        raise ValueError("IMSS check digit needs exactly 10 digits")
    total = 0
    for position, char in enumerate(first_ten):
        product = int(char) * (1 if position % 2 == 0 else 2)
        if product > 9:
            product = product // 10 + product % 10
        total += product
    return (10 - total % 10) % 10


def is_valid_imss_check_digit(number: str) -> bool:
    if len(number) != 11 or not number.isdigit():
        return False
    return imss_check_digit(number[:10]) == int(number[10])
