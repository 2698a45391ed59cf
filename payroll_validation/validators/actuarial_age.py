"""
Actuarial age, tenure structure and pension eligibility projections.

Works on active employees with usable birth and hire dates; records missing
either are reported by the date validators and skipped here.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Optional

from ..actuarial import (
    age_band,
    pension_eligibility,
    project_pension,
    projection_band,
    stability_index,
    tenure_bucket,
)
from ..config import ValidationConfig
from ..models import AgentDescriptor, Collection, MappedData, ValidationCategory
from ..utils import calculate_actuarial_age, calculate_age, calculate_service_years
from .base import ResultBuilder, UpstreamResults, capture_failures

logger = logging.getLogger(__name__)


def pension_risk_level(band_counts: Counter, total: int) -> str:
    if total == 0:
        return "BAJO"
    immediate = band_counts.get("IMMEDIATE", 0) / total
    next_five = band_counts.get("NEXT_5_YEARS", 0) / total
    if immediate > 0.10 or next_five > 0.25:
        return "ALTO"
    if next_five > 0.15:
        return "MEDIO"
    return "BAJO"


class ActuarialAgeValidator:
    descriptor = AgentDescriptor(
        name="ActuarialAgeValidator",
        description="Actuarial age, tenure buckets, retirement eligibility and benefit present values",
        priority=2,
        dependencies=("BirthDateValidator",),
        timeout=30.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        pension = self.config.pension
        reference = self.config.reference_date()

        actuarial_ages = []
        age_bands: Counter = Counter()
        buckets: Counter = Counter()
        projection_bands: Counter = Counter()
        eligible_rows = {"NORMAL": [], "EARLY": []}
        present_values: Dict[str, float] = {}

        for record in data.active_personnel:
            if record.birth_date is None or record.hire_date is None:
                continue
            if record.birth_date > reference or record.hire_date > reference:
                continue
            age = calculate_age(record.birth_date, reference)
            service = calculate_service_years(record.hire_date, reference)

            actuarial_ages.append(calculate_actuarial_age(record.birth_date, reference))
            age_bands[age_band(age)] += 1
            buckets[tenure_bucket(service)] += 1

            years, kind = pension_eligibility(age, service, pension)
            projection_bands[projection_band(years)] += 1
            if years == 0:
                eligible_rows[kind].append(record.row_index)

            salary = record.integrated_salary or record.base_salary
            if salary:
                projection = project_pension(age, service, salary, pension)
                present_values[str(record.row_index)] = round(projection.present_value, 2)

        total = len(actuarial_ages)
        if total == 0:
            return [
                self.results.warning(
                    "birth_date",
                    "No active employee has usable birth and hire dates; actuarial ages cannot be computed",
                    category=ValidationCategory.MISSING_DATA,
                    suggestion="Complete birth and hire dates before valuation",
                    collection=Collection.POPULATION,
                )
            ]

        mean_age = sum(actuarial_ages) / total
        findings = [
            self.results.info(
                "actuarial_age",
                f"Mean actuarial age {mean_age:.2f} over {total} active employees",
                category=ValidationCategory.STATISTICAL_OUTLIER,
                metadata={
                    "mean_actuarial_age": round(mean_age, 4),
                    "age_distribution": {band: age_bands[band] for band in sorted(age_bands)},
                },
            ),
            self.results.info(
                "hire_date",
                f"Tenure stability index {stability_index(buckets):.2f}",
                category=ValidationCategory.STATISTICAL_OUTLIER,
                metadata={
                    "service_distribution": dict(buckets),
                    "stability_index": stability_index(buckets),
                },
            ),
        ]

        level = pension_risk_level(projection_bands, total)
        eligible = eligible_rows["NORMAL"] + eligible_rows["EARLY"]
        message = (
            f"Pension eligibility: {projection_bands.get('IMMEDIATE', 0)} eligible now, "
            f"{projection_bands.get('NEXT_5_YEARS', 0)} within 5 years (risk {level})"
        )
        metadata = {
            "projection_bands": dict(projection_bands),
            "normal_eligible": len(eligible_rows["NORMAL"]),
            "early_eligible": len(eligible_rows["EARLY"]),
            "pension_risk_level": level,
        }
        if level == "ALTO":
            findings.append(
                self.results.warning(
                    "retirement",
                    message,
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    suggestion="Many retirements are close; confirm dates and plan the liability cash flow",
                    rows=eligible,
                    metadata=metadata,
                )
            )
        else:
            findings.append(
                self.results.info(
                    "retirement",
                    message,
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    rows=eligible,
                    collection=Collection.ACTIVE,
                    metadata=metadata,
                )
            )

        if present_values:
            total_pv = sum(present_values.values())
            findings.append(
                self.results.info(
                    "present_value",
                    f"Projected benefit present value {total_pv:,.2f} MXN for {len(present_values)} employees",
                    category=ValidationCategory.STATISTICAL_OUTLIER,
                    metadata={"total_present_value": round(total_pv, 2), "by_row": present_values},
                )
            )
        logger.debug(f"Actuarial ages computed for {total} employees")
        return findings
