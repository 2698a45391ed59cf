"""
Tax ID (RFC) validation for individuals.

An individual RFC is 13 characters: a four-letter name block, the YYMMDD
birth segment and a three-character homoclave. Per record the checks run in
a fixed order and stop at the first failure, so one malformed RFC produces a
single finding instead of a cascade:

    structure -> birth date vs declared -> derived age -> name initials -> homoclave
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from ..config import ValidationConfig
from ..constants import PROHIBITED_WORDS, SUSPICIOUS_TAX_ID_FRAGMENTS
from ..models import AgentDescriptor, Collection, EmployeeRecord, MappedData, ValidationCategory
from ..utils import calculate_age, clean_identifier, days_between, decode_birth_date_from_national_id, name_initials
from .base import ResultBuilder, UpstreamResults, capture_failures, find_duplicates, iter_collections

logger = logging.getLogger(__name__)

TAX_ID_LENGTH = 13
_TAX_ID_LAYOUT = re.compile(r"^([A-ZÑ&]{4})(\d{6})([A-V1-9])([A-Z1-9])([0-9A])$")

_STRUCTURE_MESSAGES = {
    "length": "Tax ID must have 13 characters",
    "layout": "Tax ID does not follow the AAAA-YYMMDD-XXX layout",
    "prohibited": "Tax ID name block is a prohibited word",
    "date": "Tax ID embeds an invalid birth date",
}


def tax_id_structure_problem(tax_id: str, century_threshold: int = 30) -> Optional[str]:
    """Return the first structural defect of an individual RFC, or ``None``."""
    if len(tax_id) != TAX_ID_LENGTH:
        return "length"
    match = _TAX_ID_LAYOUT.match(tax_id)
    if not match:
        return "layout"
    if match.group(1) in PROHIBITED_WORDS:
        return "prohibited"
    if decode_birth_date_from_national_id(tax_id, century_threshold) is None:
        return "date"
    return None


class TaxIdValidator:
    """Validates RFC structure, embedded birth date and consistency with the record."""

    descriptor = AgentDescriptor(
        name="TaxIdValidator",
        description="RFC structure, embedded birth date, duplicates and templates",
        priority=10,
        timeout=15.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        demo = self.config.demographics
        reference = self.config.reference_date()
        findings: List = []
        values_by_collection: Dict[Collection, List[Tuple[str, int]]] = {}
        valid = 0
        checked = 0

        for collection, records in iter_collections(data):
            issues: Dict[str, List[int]] = defaultdict(list)
            samples: Dict[str, List[str]] = defaultdict(list)
            values: List[Tuple[str, int]] = []

            for record in records:
                tax_id = clean_identifier(record.tax_id)
                if tax_id is None:
                    issues["missing"].append(record.row_index)
                    continue
                checked += 1
                values.append((tax_id, record.row_index))

                if any(fragment in tax_id for fragment in SUSPICIOUS_TAX_ID_FRAGMENTS):
                    issues["template"].append(record.row_index)
                    samples["template"].append(tax_id)

                problem = self._check_record(record, tax_id, reference)
                if problem is None:
                    valid += 1
                    continue
                issues[problem].append(record.row_index)
                if len(samples[problem]) < 5:
                    samples[problem].append(tax_id)

            values_by_collection[collection] = values
            findings.extend(self._collection_findings(collection, issues, samples, demo.tax_id_max_age))
            for tax_id, rows in find_duplicates(values).items():
                findings.append(
                    self.results.critical(
                        "tax_id",
                        f"Tax ID {tax_id} is shared by {len(rows)} records",
                        category=ValidationCategory.CONSISTENCY_VIOLATION,
                        suggestion="Each person must have a unique RFC; correct or merge the duplicated rows",
                        rows=rows,
                        collection=collection,
                        metadata={"tax_id": tax_id},
                    )
                )

        findings.extend(self._cross_collection_duplicates(values_by_collection))

        findings.append(
            self.results.info(
                "tax_id",
                f"Tax ID validation: {valid} of {checked} present tax IDs passed every check",
                category=ValidationCategory.FORMAT_INVALID,
                metadata={"checked": checked, "valid": valid, "total_records": data.total_records},
            )
        )
        return findings

    def _check_record(self, record: EmployeeRecord, tax_id: str, reference) -> Optional[str]:
        demo = self.config.demographics
        structure = tax_id_structure_problem(tax_id, demo.century_threshold)
        if structure is not None:
            return structure

        decoded = decode_birth_date_from_national_id(tax_id, demo.century_threshold)
        if record.birth_date is not None and days_between(decoded, record.birth_date) > demo.birth_date_tolerance_days:
            return "birth_mismatch"

        age = calculate_age(decoded, reference)
        if age < demo.min_working_age:
            return "underage"
        if age > demo.tax_id_max_age:
            return "overage"

        initials = name_initials(record.name)
        if initials and tax_id[0] not in initials:
            return "initials"

        homoclave = tax_id[10:12]
        if homoclave == "00" or homoclave[0] == homoclave[1]:
            return "homoclave"
        return None

    def _collection_findings(self, collection, issues, samples, max_age):
        active = collection is Collection.ACTIVE
        findings = []

        if issues.get("missing"):
            rows = issues["missing"]
            message = f"{len(rows)} {collection.value} records have no tax ID"
            suggestion = "Capture the RFC from the employee's tax registration certificate"
            if active:
                findings.append(
                    self.results.critical(
                        "tax_id", message, category=ValidationCategory.MISSING_DATA,
                        suggestion=suggestion, rows=rows, collection=collection,
                    )
                )
            else:
                findings.append(
                    self.results.warning(
                        "tax_id", message, category=ValidationCategory.MISSING_DATA,
                        suggestion=suggestion, rows=rows, collection=collection,
                    )
                )

        for problem, message in _STRUCTURE_MESSAGES.items():
            rows = issues.get(problem)
            if rows:
                findings.append(
                    self.results.critical(
                        "tax_id",
                        f"{message} ({len(rows)} records)",
                        category=ValidationCategory.FORMAT_INVALID,
                        suggestion="Verify the RFC against the SAT registration and re-capture it",
                        rows=rows,
                        collection=collection,
                        metadata={"problem": problem, "samples": samples.get(problem, [])},
                    )
                )

        if issues.get("birth_mismatch"):
            findings.append(
                self.results.warning(
                    "tax_id",
                    f"Birth date encoded in the tax ID differs from the declared birth date "
                    f"({len(issues['birth_mismatch'])} records)",
                    category=ValidationCategory.CONSISTENCY_VIOLATION,
                    suggestion="Confirm which of the birth date or the RFC is correct",
                    rows=issues["birth_mismatch"],
                    collection=collection,
                )
            )
        if issues.get("underage"):
            findings.append(
                self.results.critical(
                    "tax_id",
                    f"Tax ID implies an age below the legal working minimum ({len(issues['underage'])} records)",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    suggestion="Check the birth segment of the RFC; minors under 16 cannot be employed",
                    rows=issues["underage"],
                    collection=collection,
                )
            )
        if issues.get("overage"):
            findings.append(
                self.results.warning(
                    "tax_id",
                    f"Tax ID implies an age above {max_age} ({len(issues['overage'])} records)",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    suggestion="Check the century of the RFC birth segment",
                    rows=issues["overage"],
                    collection=collection,
                )
            )
        if issues.get("initials"):
            findings.append(
                self.results.warning(
                    "tax_id",
                    f"Tax ID initial does not match the employee name ({len(issues['initials'])} records)",
                    category=ValidationCategory.CONSISTENCY_VIOLATION,
                    suggestion="Confirm the RFC belongs to this employee",
                    rows=issues["initials"],
                    collection=collection,
                    metadata={"samples": samples.get("initials", [])},
                )
            )
        if issues.get("homoclave"):
            findings.append(
                self.results.warning(
                    "tax_id",
                    f"Tax ID homoclave looks generated ({len(issues['homoclave'])} records)",
                    category=ValidationCategory.FORMAT_INVALID,
                    suggestion="Replace placeholder homoclaves with the one issued by the SAT",
                    rows=issues["homoclave"],
                    collection=collection,
                )
            )
        if issues.get("template"):
            findings.append(
                self.results.warning(
                    "tax_id",
                    f"Tax IDs contain template fragments ({len(issues['template'])} records)",
                    category=ValidationCategory.FORMAT_INVALID,
                    suggestion="Replace test or placeholder RFCs with real values",
                    rows=issues["template"],
                    collection=collection,
                    metadata={"samples": samples["template"][:5]},
                )
            )
        return findings

    def _cross_collection_duplicates(self, values_by_collection):
        active = {value: row for value, row in values_by_collection.get(Collection.ACTIVE, [])}
        findings = []
        for value, termination_row in values_by_collection.get(Collection.TERMINATIONS, []):
            if value in active:
                findings.append(
                    self.results.critical(
                        "tax_id",
                        f"Tax ID {value} appears both as active and terminated",
                        category=ValidationCategory.CONSISTENCY_VIOLATION,
                        suggestion="Remove the employee from one of the two lists or correct the RFC",
                        collection=Collection.POPULATION,
                        metadata={
                            "tax_id": value,
                            "active_row": active[value],
                            "termination_row": termination_row,
                        },
                    )
                )
        if findings:
            logger.debug(f"{len(findings)} tax IDs present in both collections")
        return findings
