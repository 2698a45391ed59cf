"""
Demographic composition of the active workforce.

Breakdowns by generation, sex and tenure group, an age-diversity score, the
pay gap between men and women (declared sex, else inferred from the given
name) and the knowledge-transfer risk carried by long-tenure employees.
"""

from __future__ import annotations

from collections import Counter
from typing import Dict, List, Optional

from ..config import ValidationConfig
from ..constants import GENERATIONS
from ..models import AgentDescriptor, Collection, MappedData, ValidationCategory
from ..statistics import shannon_diversity
from ..utils import calculate_age, calculate_service_years, infer_sex_from_name
from .base import ResultBuilder, UpstreamResults, capture_failures
from .birth_date import generation_for


def pay_gap_status(gap: float, moderate: float = 0.05, inequitable: float = 0.15) -> str:
    magnitude = abs(gap)
    if magnitude < moderate:
        return "EQUITABLE"
    if magnitude < inequitable:
        return "MODERATE"
    return "INEQUITABLE"


class DemographicCompositionValidator:
    descriptor = AgentDescriptor(
        name="DemographicCompositionValidator",
        description="Generation, sex and tenure composition, diversity, pay equity and succession risk",
        priority=10,
        dependencies=("BirthDateValidator", "ActuarialAgeValidator", "NameAnalyzer"),
        timeout=25.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    def tenure_group(self, service_years: int) -> str:
        demo = self.config.demographics
        if service_years < 2:
            return "NEW"
        if service_years < demo.long_tenure_years:
            return "ESTABLISHED"
        if service_years < demo.legacy_tenure_years:
            return "VETERAN"
        return "LEGACY"

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        demo = self.config.demographics
        reference = self.config.reference_date()
        records = data.active_personnel
        if not records:
            return []

        generations: Counter = Counter({name: 0 for name, _, _ in GENERATIONS})
        sexes: Counter = Counter()
        tenure: Counter = Counter()
        salaries: Dict[str, List[float]] = {"H": [], "M": []}
        retiring_5 = retiring_10 = 0

        for record in records:
            if record.birth_date is not None and record.birth_date <= reference:
                generations[generation_for(record.birth_date.year)] += 1
                age = calculate_age(record.birth_date, reference)
                if age >= 60:
                    retiring_5 += 1
                elif age >= 55:
                    retiring_10 += 1
            if record.hire_date is not None and record.hire_date <= reference:
                tenure[self.tenure_group(calculate_service_years(record.hire_date, reference))] += 1

            sex = record.declared_sex or infer_sex_from_name(record.name)
            sexes[sex or "UNKNOWN"] += 1
            salary = record.base_salary or record.integrated_salary
            if sex in salaries and salary:
                salaries[sex].append(salary)

        total = len(records)
        diversity = shannon_diversity({k: v for k, v in generations.items() if k != "OTHER"})
        findings = [
            self.results.info(
                "demographics",
                f"Workforce composition: {total} active employees, age diversity score {diversity}/100",
                category=ValidationCategory.STATISTICAL_OUTLIER,
                metadata={
                    "generations": dict(generations),
                    "sex": dict(sexes),
                    "tenure_groups": dict(tenure),
                    "age_diversity_score": diversity,
                    "retiring_next_5_years": retiring_5,
                    "retiring_next_10_years": retiring_10,
                    "pension_risk_level": self._upstream_pension_risk(upstream),
                },
            )
        ]

        findings.extend(self._pay_gap(salaries))

        knowledge_ratio = (tenure.get("VETERAN", 0) + tenure.get("LEGACY", 0)) / total
        if knowledge_ratio > demo.knowledge_risk_high:
            findings.append(
                self.results.warning(
                    "hire_date",
                    f"{knowledge_ratio:.1%} of the workforce has {demo.long_tenure_years}+ years of service; "
                    f"high knowledge-transfer risk",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    suggestion="Set up mentoring and succession plans for long-tenure roles",
                    collection=Collection.POPULATION,
                    metadata={"knowledge_ratio": round(knowledge_ratio, 4), "risk": "HIGH"},
                )
            )
        elif knowledge_ratio > demo.knowledge_risk_medium:
            findings.append(
                self.results.info(
                    "hire_date",
                    f"{knowledge_ratio:.1%} of the workforce has {demo.long_tenure_years}+ years of service; "
                    f"plan knowledge transfer",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    metadata={"knowledge_ratio": round(knowledge_ratio, 4), "risk": "MEDIUM"},
                )
            )
        return findings

    def _pay_gap(self, salaries: Dict[str, List[float]]):
        demo = self.config.demographics
        male, female = salaries["H"], salaries["M"]
        if not male or not female:
            return []
        male_avg = sum(male) / len(male)
        female_avg = sum(female) / len(female)
        gap = (male_avg - female_avg) / male_avg
        status = pay_gap_status(gap, demo.pay_gap_moderate, demo.pay_gap_inequitable)
        metadata = {
            "male_average": round(male_avg, 2),
            "female_average": round(female_avg, 2),
            "gap": round(gap, 4),
            "status": status,
        }
        message = f"Pay gap between men and women: {gap:.1%} ({status})"
        if status == "EQUITABLE":
            return [
                self.results.info(
                    "base_salary", message,
                    category=ValidationCategory.STATISTICAL_OUTLIER, metadata=metadata,
                )
            ]
        return [
            self.results.warning(
                "base_salary",
                message,
                category=ValidationCategory.STATISTICAL_OUTLIER,
                suggestion="Review pay equity by position before using salaries in the valuation",
                collection=Collection.POPULATION,
                metadata=metadata,
            )
        ]

    @staticmethod
    def _upstream_pension_risk(upstream: Optional[UpstreamResults]) -> Optional[str]:
        for result in (upstream or {}).get("ActuarialAgeValidator", ()):
            level = result.metadata.get("pension_risk_level")
            if level:
                return level
        return None
