"""
Social-security number (IMSS NSS) validation.

An NSS has 11 digits::

    SS YY BB NNNN C
    |  |  |  |    +-- check digit (weighted modulo 10)
    |  |  |  +------- serial within the block
    |  |  +---------- birth year of the holder (not checked here)
    |  +------------- registration year
    +---------------- subdelegation that issued the number
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from typing import Dict, List, Optional

from ..config import ValidationConfig
from ..constants import SEQUENTIAL_IMSS_PATTERNS
from ..models import AgentDescriptor, Collection, MappedData, ValidationCategory
from ..utils import decode_two_digit_year, extract_digits, imss_check_digit
from .base import ResultBuilder, UpstreamResults, capture_failures, find_duplicates, iter_collections

logger = logging.getLogger(__name__)

SOCIAL_SECURITY_LENGTH = 11


def registration_year(nss: str, century_threshold: int = 30) -> int:
    return decode_two_digit_year(int(nss[2:4]), century_threshold)


def is_templated_sequence(nss: str) -> bool:
    """Dummy-looking block in positions 2-7 (``000000``, ``123456``, ``121212`` ...)."""
    block = nss[2:8]
    return block in SEQUENTIAL_IMSS_PATTERNS or block == block[:2] * 3


class SocialSecurityValidator:
    """Validates NSS structure, check digit, registration year and population patterns."""

    descriptor = AgentDescriptor(
        name="SocialSecurityValidator",
        description="IMSS number structure, check digit, subdelegation and registration year",
        priority=8,
        timeout=15.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        findings = []
        active_numbers: List[str] = []
        for collection, records in iter_collections(data):
            numbers = []
            findings.extend(self._validate_collection(collection, records, numbers))
            if collection is Collection.ACTIVE:
                active_numbers = [nss for nss, _ in numbers]
            for nss, rows in find_duplicates(numbers).items():
                findings.append(
                    self.results.critical(
                        "social_security_id",
                        f"IMSS number {nss} is shared by {len(rows)} records",
                        category=ValidationCategory.CONSISTENCY_VIOLATION,
                        suggestion="Each worker holds one NSS for life; correct the duplicated rows",
                        rows=rows,
                        collection=collection,
                        metadata={"social_security_id": nss},
                    )
                )
        findings.extend(self._population_patterns(active_numbers))
        return findings

    def _validate_collection(self, collection, records, numbers):
        ss = self.config.social_security
        threshold = self.config.demographics.century_threshold
        current_year = self.config.reference_date().year
        issues: Dict[str, List[int]] = defaultdict(list)
        check_digit_errors = []
        findings = []

        for record in records:
            nss = extract_digits(record.social_security_id)
            if nss is None:
                issues["missing"].append(record.row_index)
                continue

            if len(nss) != SOCIAL_SECURITY_LENGTH:
                issues["length"].append(record.row_index)
                continue
            if len(set(nss)) == 1:
                issues["repeated"].append(record.row_index)
                continue
            if nss.startswith("00"):
                issues["leading_zeros"].append(record.row_index)
                continue
            numbers.append((nss, record.row_index))

            expected = imss_check_digit(nss[:10])
            if expected != int(nss[10]):
                check_digit_errors.append(
                    {"row": record.row_index, "expected": expected, "provided": int(nss[10])}
                )
                continue

            if not 1 <= int(nss[:2]) <= ss.max_subdelegation:
                issues["subdelegation"].append(record.row_index)
            if is_templated_sequence(nss):
                issues["templated"].append(record.row_index)

            year = registration_year(nss, threshold)
            if year > current_year:
                issues["future_registration"].append(record.row_index)
            elif year < ss.min_registration_year:
                issues["pre_imss_registration"].append(record.row_index)
            elif record.hire_date is not None and abs(year - record.hire_date.year) > ss.registration_year_tolerance:
                issues["registration_vs_hire"].append(record.row_index)

        if issues.get("missing"):
            rows = issues["missing"]
            message = f"{len(rows)} {collection.value} records have no IMSS number"
            suggestion = "Capture the NSS from the IMSS affiliation record"
            if collection is Collection.ACTIVE:
                findings.append(
                    self.results.critical(
                        "social_security_id", message, category=ValidationCategory.MISSING_DATA,
                        suggestion=suggestion, rows=rows, collection=collection,
                    )
                )
            else:
                findings.append(
                    self.results.warning(
                        "social_security_id", message, category=ValidationCategory.MISSING_DATA,
                        suggestion=suggestion, rows=rows, collection=collection,
                    )
                )

        structural = {
            "length": "IMSS number must have exactly 11 digits",
            "repeated": "IMSS number is a single repeated digit",
            "leading_zeros": "IMSS number starts with 00",
        }
        for problem, message in structural.items():
            if issues.get(problem):
                findings.append(
                    self.results.critical(
                        "social_security_id",
                        f"{message} ({len(issues[problem])} records)",
                        category=ValidationCategory.FORMAT_INVALID,
                        suggestion="Re-capture the NSS from the IMSS affiliation record",
                        rows=issues[problem],
                        collection=collection,
                        metadata={"problem": problem},
                    )
                )

        for error in check_digit_errors:
            findings.append(
                self.results.critical(
                    "social_security_id",
                    f"IMSS check digit mismatch: expected {error['expected']}, found {error['provided']}",
                    category=ValidationCategory.FORMAT_INVALID,
                    suggestion="The NSS has a typo; verify it against the IMSS affiliation record",
                    rows=[error["row"]],
                    collection=collection,
                    metadata=error,
                )
            )

        if issues.get("future_registration"):
            findings.append(
                self.results.critical(
                    "social_security_id",
                    f"IMSS registration year is in the future ({len(issues['future_registration'])} records)",
                    category=ValidationCategory.CONSISTENCY_VIOLATION,
                    suggestion="Positions 3-4 of the NSS hold the registration year; verify the number",
                    rows=issues["future_registration"],
                    collection=collection,
                )
            )

        warnings = {
            "subdelegation": (
                f"IMSS subdelegation outside 01-{self.config.social_security.max_subdelegation:02d}",
                ValidationCategory.FORMAT_INVALID,
            ),
            "templated": ("IMSS number contains a templated sequence", ValidationCategory.FORMAT_INVALID),
            "pre_imss_registration": (
                f"IMSS registration year before {self.config.social_security.min_registration_year}",
                ValidationCategory.CONSISTENCY_VIOLATION,
            ),
            "registration_vs_hire": (
                "IMSS registration year is far from the hire year",
                ValidationCategory.CONSISTENCY_VIOLATION,
            ),
        }
        for problem, (message, category) in warnings.items():
            if issues.get(problem):
                findings.append(
                    self.results.warning(
                        "social_security_id",
                        f"{message} ({len(issues[problem])} records)",
                        category=category,
                        suggestion="Confirm the NSS with the employee's IMSS affiliation record",
                        rows=issues[problem],
                        collection=collection,
                        metadata={"problem": problem},
                    )
                )
        return findings

    def _population_patterns(self, numbers: List[str]):
        ss = self.config.social_security
        findings = []
        if not numbers:
            return findings

        ordered = sorted(set(numbers))
        consecutive = set()
        for current, following in zip(ordered, ordered[1:]):
            if int(following) == int(current) + 1:
                consecutive.update((current, following))
        if consecutive:
            findings.append(
                self.results.warning(
                    "social_security_id",
                    f"Detected {len(consecutive)} consecutive IMSS numbers",
                    category=ValidationCategory.STATISTICAL_OUTLIER,
                    suggestion="Consecutive numbers suggest block assignment or test data",
                    collection=Collection.POPULATION,
                    metadata={"consecutive": sorted(consecutive)},
                )
            )

        subdelegations = {nss[:2] for nss in numbers}
        if len(subdelegations) == 1 and len(numbers) > ss.subdelegation_concentration_min_population:
            findings.append(
                self.results.warning(
                    "social_security_id",
                    "Every employee's IMSS number comes from the same subdelegation",
                    category=ValidationCategory.STATISTICAL_OUTLIER,
                    suggestion="Verify that the whole workforce was registered in one region",
                    collection=Collection.POPULATION,
                    metadata={"subdelegation": next(iter(subdelegations))},
                )
            )

        threshold = self.config.demographics.century_threshold
        years = Counter(registration_year(nss, threshold) for nss in numbers)
        concentrated = sorted(
            year
            for year, count in years.items()
            if count / len(numbers) > ss.registration_year_share_threshold
            and count > ss.registration_year_min_count
        )
        if concentrated:
            findings.append(
                self.results.warning(
                    "social_security_id",
                    f"High concentration of IMSS registrations in {', '.join(map(str, concentrated))}",
                    category=ValidationCategory.STATISTICAL_OUTLIER,
                    suggestion="Check whether the registration years reflect real hiring waves",
                    collection=Collection.POPULATION,
                    metadata={"concentrated_years": concentrated},
                )
            )
        logger.debug(f"Analyzed IMSS patterns for {len(numbers)} active employees")
        return findings
