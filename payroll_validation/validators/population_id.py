"""
Population ID (CURP) validation.

The CURP is optional for valuation, so a missing value is only a warning.
When present it must be well formed, and it is cross-checked against the
declared sex and the tax ID, which share the name block and birth segment.
"""

from __future__ import annotations

import re
from collections import defaultdict
from typing import Dict, List, Optional

from ..config import ValidationConfig
from ..constants import CURP_STATE_CODES, PROHIBITED_WORDS
from ..models import AgentDescriptor, MappedData, ValidationCategory
from ..utils import clean_identifier, decode_birth_date_from_national_id
from .base import ResultBuilder, UpstreamResults, capture_failures, find_duplicates, iter_collections

POPULATION_ID_LENGTH = 18
_POPULATION_ID_LAYOUT = re.compile(
    r"^([A-Z]{4})(\d{6})([HM])([A-Z]{2})([B-DF-HJ-NP-TV-Z]{3})([0-9A-Z])(\d)$"
)

_CRITICAL_PROBLEMS = {
    "length": "CURP must have 18 characters",
    "layout": "CURP does not follow the official layout",
    "prohibited": "CURP name block is a prohibited word",
    "date": "CURP embeds an invalid birth date",
    "state": "CURP carries an unknown state code",
}

_WARNING_PROBLEMS = {
    "differentiator": "CURP differentiator does not match the birth century",
    "sex_mismatch": "Sex encoded in the CURP differs from the declared sex",
    "tax_id_mismatch": "CURP and tax ID disagree on name block or birth segment",
}


def population_id_problem(curp: str, century_threshold: int = 30) -> Optional[str]:
    """First defect of a CURP, structural problems before the weak check."""
    if len(curp) != POPULATION_ID_LENGTH:
        return "length"
    match = _POPULATION_ID_LAYOUT.match(curp)
    if not match:
        return "layout"
    if match.group(1) in PROHIBITED_WORDS:
        return "prohibited"
    birth = decode_birth_date_from_national_id(curp, century_threshold)
    if birth is None:
        return "date"
    if match.group(4) not in CURP_STATE_CODES:
        return "state"
    differentiator = match.group(6)
    if birth.year < 2000 and not differentiator.isdigit():
        return "differentiator"
    if birth.year >= 2000 and not differentiator.isalpha():
        return "differentiator"
    return None


class PopulationIdValidator:
    descriptor = AgentDescriptor(
        name="PopulationIdValidator",
        description="CURP structure, state code, century differentiator and cross-checks",
        priority=9,
        timeout=15.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        threshold = self.config.demographics.century_threshold
        findings = []

        for collection, records in iter_collections(data):
            issues: Dict[str, List[int]] = defaultdict(list)
            values = []

            for record in records:
                curp = clean_identifier(record.population_id)
                if curp is None:
                    issues["missing"].append(record.row_index)
                    continue
                values.append((curp, record.row_index))

                problem = population_id_problem(curp, threshold)
                if problem is not None:
                    issues[problem].append(record.row_index)
                    if problem in _CRITICAL_PROBLEMS:
                        continue

                if record.declared_sex and curp[10] != record.declared_sex:
                    issues["sex_mismatch"].append(record.row_index)

                tax_id = clean_identifier(record.tax_id)
                if tax_id and len(tax_id) >= 10 and tax_id[:10] != curp[:10]:
                    issues["tax_id_mismatch"].append(record.row_index)

            if issues.get("missing"):
                rows = issues["missing"]
                findings.append(
                    self.results.warning(
                        "population_id",
                        f"{len(rows)} {collection.value} records have no CURP (optional, valuation may proceed)",
                        category=ValidationCategory.MISSING_DATA,
                        suggestion="Capture the CURP from RENAPO to enable identity cross-checks",
                        rows=rows,
                        collection=collection,
                    )
                )
            for problem, message in _CRITICAL_PROBLEMS.items():
                if issues.get(problem):
                    findings.append(
                        self.results.critical(
                            "population_id",
                            f"{message} ({len(issues[problem])} records)",
                            category=ValidationCategory.FORMAT_INVALID,
                            suggestion="Look the CURP up in the RENAPO registry and re-capture it",
                            rows=issues[problem],
                            collection=collection,
                            metadata={"problem": problem},
                        )
                    )
            for problem, message in _WARNING_PROBLEMS.items():
                if issues.get(problem):
                    category = (
                        ValidationCategory.FORMAT_INVALID
                        if problem == "differentiator"
                        else ValidationCategory.CONSISTENCY_VIOLATION
                    )
                    findings.append(
                        self.results.warning(
                            "population_id",
                            f"{message} ({len(issues[problem])} records)",
                            category=category,
                            suggestion="Confirm the identity documents of the affected employees",
                            rows=issues[problem],
                            collection=collection,
                            metadata={"problem": problem},
                        )
                    )
            for curp, rows in find_duplicates(values).items():
                findings.append(
                    self.results.critical(
                        "population_id",
                        f"CURP {curp} is shared by {len(rows)} records",
                        category=ValidationCategory.CONSISTENCY_VIOLATION,
                        suggestion="A CURP identifies one person; correct or merge the duplicated rows",
                        rows=rows,
                        collection=collection,
                        metadata={"population_id": curp},
                    )
                )

        return findings
