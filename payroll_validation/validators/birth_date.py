"""Birth date plausibility and age structure of the active population."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from typing import Dict, List, Optional

from ..config import ValidationConfig
from ..constants import GENERATIONS
from ..models import AgentDescriptor, Collection, MappedData, ValidationCategory
from ..statistics import describe
from ..utils import calculate_age
from .base import ResultBuilder, UpstreamResults, capture_failures, iter_collections

logger = logging.getLogger(__name__)


def generation_for(year: int) -> str:
    for name, start, end in GENERATIONS:
        if start <= year <= end:
            return name
    return "OTHER"


def population_age_risk(ages: List[int], wave_age: int = 60) -> int:
    """Heuristic 0-80 score of how top-heavy the age pyramid is."""
    if not ages:
        return 0
    score = 0
    n = len(ages)
    if sum(ages) / n > 50:
        score += 30
    if sum(1 for a in ages if a >= wave_age) / n > 0.15:
        score += 25
    if sum(1 for a in ages if a < 30) / n > 0.30:
        score += 15
    if n < 50:
        score += 10
    return score


class BirthDateValidator:
    descriptor = AgentDescriptor(
        name="BirthDateValidator",
        description="Birth date presence, legal age limits, cohorts and retirement wave",
        priority=4,
        timeout=20.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        demo = self.config.demographics
        reference = self.config.reference_date()
        findings = []
        active_ages: List[int] = []
        cohorts: Counter = Counter()

        for collection, records in iter_collections(data):
            issues: Dict[str, List[int]] = defaultdict(list)
            for record in records:
                if record.birth_date is None:
                    issues["missing"].append(record.row_index)
                    continue
                if record.birth_date > reference:
                    issues["future"].append(record.row_index)
                    continue
                age = calculate_age(record.birth_date, reference)
                if age > demo.max_plausible_age:
                    issues["implausible"].append(record.row_index)
                    continue
                if collection is Collection.ACTIVE:
                    active_ages.append(age)
                    cohorts[generation_for(record.birth_date.year)] += 1
                    if age < demo.min_working_age:
                        issues["underage"].append(record.row_index)
                    elif age > demo.extreme_age:
                        issues["extreme"].append(record.row_index)

            findings.extend(self._record_findings(collection, issues))

        if active_ages:
            findings.extend(self._population_findings(active_ages, cohorts))
        return findings

    def _record_findings(self, collection: Collection, issues: Dict[str, List[int]]):
        demo = self.config.demographics
        findings = []
        if issues.get("missing"):
            rows = issues["missing"]
            message = f"{len(rows)} {collection.value} records have no valid birth date"
            suggestion = "Capture the birth date (DD/MM/YYYY) from official identification"
            if collection is Collection.ACTIVE:
                findings.append(
                    self.results.critical(
                        "birth_date", message, category=ValidationCategory.MISSING_DATA,
                        suggestion=suggestion, rows=rows, collection=collection,
                    )
                )
            else:
                findings.append(
                    self.results.warning(
                        "birth_date", message, category=ValidationCategory.MISSING_DATA,
                        suggestion=suggestion, rows=rows, collection=collection,
                    )
                )
        if issues.get("future"):
            findings.append(
                self.results.critical(
                    "birth_date",
                    f"Birth date is in the future ({len(issues['future'])} records)",
                    category=ValidationCategory.CONSISTENCY_VIOLATION,
                    suggestion="Check the year of the birth date; it may have a wrong century",
                    rows=issues["future"],
                    collection=collection,
                )
            )
        if issues.get("implausible"):
            findings.append(
                self.results.critical(
                    "birth_date",
                    f"Age above {demo.max_plausible_age} years ({len(issues['implausible'])} records)",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    suggestion="Correct the birth date; the implied age is not biologically plausible",
                    rows=issues["implausible"],
                    collection=collection,
                )
            )
        if issues.get("underage"):
            findings.append(
                self.results.critical(
                    "birth_date",
                    f"Employees younger than {demo.min_working_age} ({len(issues['underage'])} records)",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    suggestion="Verify the birth date; employing minors under 16 is prohibited",
                    rows=issues["underage"],
                    collection=collection,
                )
            )
        if issues.get("extreme"):
            findings.append(
                self.results.warning(
                    "birth_date",
                    f"Active employees older than {demo.extreme_age} ({len(issues['extreme'])} records)",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    suggestion="Confirm these employees are still active and the birth dates are right",
                    rows=issues["extreme"],
                    collection=collection,
                )
            )
        return findings

    def _population_findings(self, ages: List[int], cohorts: Counter):
        demo = self.config.demographics
        stats = describe(ages)
        wave_share = sum(1 for a in ages if a >= demo.retirement_wave_age) / len(ages)
        risk = population_age_risk(ages, demo.retirement_wave_age)
        findings = [
            self.results.info(
                "birth_date",
                f"Active population age: mean {stats.mean:.1f}, median {stats.median:.1f}, "
                f"range {stats.minimum:.0f}-{stats.maximum:.0f}",
                category=ValidationCategory.STATISTICAL_OUTLIER,
                metadata={
                    "age_statistics": stats.to_dict(),
                    "generations": dict(cohorts.most_common()),
                    "retirement_wave_share": round(wave_share, 4),
                    "population_risk_score": risk,
                },
            )
        ]
        if wave_share > demo.retirement_wave_threshold:
            findings.append(
                self.results.warning(
                    "birth_date",
                    f"{wave_share:.1%} of active employees are {demo.retirement_wave_age} or older",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    suggestion="Plan for a retirement wave and review succession coverage",
                    collection=Collection.POPULATION,
                    metadata={"share": round(wave_share, 4), "population_risk_score": risk},
                )
            )
        logger.debug(f"Computed age structure for {len(ages)} active employees")
        return findings
