"""
Temporal consistency across dates and identity documents.

Checks the chronology birth < hire < termination, legal ages at hire and
termination, and reconciles the declared birth date with the birth segments
encoded in the tax ID and the CURP.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional

from ..config import ValidationConfig
from ..models import AgentDescriptor, Collection, MappedData, TerminationRecord, ValidationCategory
from ..utils import (
    calculate_age,
    clean_identifier,
    decode_birth_date_from_national_id,
    days_between,
    decode_two_digit_year,
    extract_digits,
)
from .base import ResultBuilder, UpstreamResults, capture_failures, iter_collections, rows_flagged_by

# issue -> (field, message, severity, category, suggestion)
_ISSUES = {
    "hire_before_birth": (
        "hire_date", "Hire date is not after the birth date", "critical",
        ValidationCategory.CONSISTENCY_VIOLATION, "Check both dates; one of them has the wrong year",
    ),
    "termination_before_hire": (
        "termination_date", "Termination date precedes the hire date", "critical",
        ValidationCategory.CONSISTENCY_VIOLATION, "Check the hire and termination dates of the record",
    ),
    "future_birth": (
        "birth_date", "Birth date is in the future", "critical",
        ValidationCategory.CONSISTENCY_VIOLATION, "Correct the birth date",
    ),
    "future_hire": (
        "hire_date", "Hire date is in the future", "critical",
        ValidationCategory.CONSISTENCY_VIOLATION, "Remove future hires or correct the hire date",
    ),
    "future_termination": (
        "termination_date", "Termination date is in the future", "critical",
        ValidationCategory.CONSISTENCY_VIOLATION, "Only terminations up to the valuation date belong here",
    ),
    "underage_hire": (
        "hire_date", "Employee was younger than the legal minimum at hire", "critical",
        ValidationCategory.BUSINESS_RULE_VIOLATION, "Verify birth and hire dates; hiring under 16 is prohibited",
    ),
    "late_hire": (
        "hire_date", "Employee was hired above the usual maximum hiring age", "warning",
        ValidationCategory.BUSINESS_RULE_VIOLATION, "Confirm the hire and birth dates",
    ),
    "late_termination": (
        "termination_date", "Age at termination is unusually high", "warning",
        ValidationCategory.BUSINESS_RULE_VIOLATION, "Confirm the birth and termination dates",
    ),
    "registration_before_birth": (
        "social_security_id", "IMSS registration year is earlier than the birth year", "critical",
        ValidationCategory.CONSISTENCY_VIOLATION, "Verify the NSS and the birth date; one belongs to another person",
    ),
}


class TemporalConsistencyValidator:
    descriptor = AgentDescriptor(
        name="TemporalConsistencyValidator",
        description="Date chronology, ages at hire and termination, identity birth-date reconciliation",
        priority=8,
        dependencies=(
            "BirthDateValidator",
            "HireDateValidator",
            "TaxIdValidator",
            "PopulationIdValidator",
        ),
        timeout=30.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        findings = []
        for collection, records in iter_collections(data):
            issues: Dict[str, List[int]] = defaultdict(list)
            deltas: Dict[str, Dict[str, List]] = {
                "tax_id": defaultdict(list),
                "population_id": defaultdict(list),
            }
            for record in records:
                self._check_record(record, issues, deltas)

            for issue, rows in issues.items():
                findings.append(self._issue_result(issue, rows, collection))
            findings.extend(self._reconciliation_results(deltas, collection, upstream))
        return findings

    def _check_record(self, record, issues, deltas) -> None:
        demo = self.config.demographics
        reference = self.config.reference_date()
        row = record.row_index
        birth, hire = record.birth_date, record.hire_date
        termination = record.termination_date if isinstance(record, TerminationRecord) else None

        if birth and birth > reference:
            issues["future_birth"].append(row)
        if hire and hire > reference:
            issues["future_hire"].append(row)
        if termination and termination > reference:
            issues["future_termination"].append(row)

        if birth and hire:
            if hire <= birth:
                issues["hire_before_birth"].append(row)
            else:
                age_at_hire = calculate_age(birth, hire)
                if age_at_hire < demo.min_working_age:
                    issues["underage_hire"].append(row)
                elif age_at_hire > demo.max_hire_age:
                    issues["late_hire"].append(row)
        if hire and termination and termination < hire:
            issues["termination_before_hire"].append(row)
        if birth and termination and calculate_age(birth, termination) > demo.max_termination_age:
            issues["late_termination"].append(row)

        nss = extract_digits(record.social_security_id)
        if birth and nss and len(nss) == 11:
            registered = decode_two_digit_year(int(nss[2:4]), demo.century_threshold)
            if registered < birth.year:
                issues["registration_before_birth"].append(row)

        if birth is None:
            return
        for field_name in ("tax_id", "population_id"):
            identifier = clean_identifier(getattr(record, field_name))
            decoded = decode_birth_date_from_national_id(identifier, demo.century_threshold)
            if decoded is None:
                continue
            delta = days_between(decoded, birth)
            if delta > demo.critical_day_delta:
                deltas[field_name]["critical"].append((row, delta, decoded.isoformat()))
            elif delta >= 1:
                deltas[field_name]["warning"].append((row, delta, decoded.isoformat()))

    def _issue_result(self, issue: str, rows: List[int], collection: Collection):
        field_name, message, severity, category, suggestion = _ISSUES[issue]
        message = f"{message} ({len(rows)} records)"
        if severity == "critical":
            return self.results.critical(
                field_name, message, category=category, suggestion=suggestion,
                rows=rows, collection=collection, metadata={"issue": issue},
            )
        return self.results.warning(
            field_name, message, category=category, suggestion=suggestion,
            rows=rows, collection=collection, metadata={"issue": issue},
        )

    def _reconciliation_results(self, deltas, collection: Collection, upstream: Optional[UpstreamResults]):
        labels = {"tax_id": "tax ID", "population_id": "CURP"}
        sources = {"tax_id": "TaxIdValidator", "population_id": "PopulationIdValidator"}
        findings = []
        for field_name, by_severity in deltas.items():
            corroborated = set(rows_flagged_by((upstream or {}).get(sources[field_name], ()), collection))
            for severity, entries in by_severity.items():
                rows = [row for row, _, _ in entries]
                metadata = {
                    "source": field_name,
                    "deltas": [{"row": row, "days": days, "decoded": decoded} for row, days, decoded in entries],
                    "also_flagged_by_identity_validator": sorted(corroborated.intersection(rows)),
                }
                if severity == "critical":
                    findings.append(
                        self.results.critical(
                            "birth_date",
                            f"Declared birth date differs from the {labels[field_name]} birth segment by more "
                            f"than {self.config.demographics.critical_day_delta} days ({len(rows)} records)",
                            category=ValidationCategory.CONSISTENCY_VIOLATION,
                            suggestion=f"Reconcile the birth date with the {labels[field_name]}; "
                            f"the century or the document may be wrong",
                            rows=rows,
                            collection=collection,
                            metadata=metadata,
                        )
                    )
                else:
                    findings.append(
                        self.results.warning(
                            "birth_date",
                            f"Declared birth date differs slightly from the {labels[field_name]} "
                            f"birth segment ({len(rows)} records)",
                            category=ValidationCategory.CONSISTENCY_VIOLATION,
                            suggestion="Check for a day/month transposition",
                            rows=rows,
                            collection=collection,
                            metadata=metadata,
                        )
                    )
        return findings
