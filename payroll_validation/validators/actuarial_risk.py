"""
Actuarial risk screening.

Scores each active employee on retirement proximity, salary magnitude,
probability of staying until retirement and projected liability, then looks
at population-level turnover, salary concentration and plan sustainability.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..actuarial import PensionProjection, age_band, mortality_rate, project_pension
from ..config import RiskSettings, ValidationConfig
from ..models import AgentDescriptor, Collection, MappedData, ValidationCategory
from ..utils import calculate_age, calculate_service_years
from .base import ResultBuilder, UpstreamResults, capture_failures

logger = logging.getLogger(__name__)

RISK_LEVELS = ("CRÍTICO", "ALTO", "MEDIO", "BAJO")


@dataclass
class EmployeeRisk:
    row_index: int
    score: int
    level: str
    salary: float
    projection: PensionProjection
    factors: List[str] = field(default_factory=list)


def score_employee(
    row_index: int, age: int, salary: float, projection: PensionProjection, risk: RiskSettings
) -> EmployeeRisk:
    """Weighted 0-90 risk score and its level."""
    score = 0
    factors = []
    if age > risk.senior_age:
        score += risk.senior_age_points
        factors.append("close to retirement")
    elif age > risk.mid_age:
        score += risk.mid_age_points
        factors.append("mid-career")
    if salary > risk.high_salary:
        score += risk.high_salary_points
        factors.append("high salary")
    if projection.service_probability < risk.low_service_probability:
        score += risk.low_service_probability_points
        factors.append("low probability of reaching retirement in service")
    if projection.present_value > risk.high_present_value:
        score += risk.high_present_value_points
        factors.append("high projected liability")

    if score >= risk.critical_score:
        level = "CRÍTICO"
    elif score >= risk.high_score:
        level = "ALTO"
    elif score >= risk.medium_score:
        level = "MEDIO"
    else:
        level = "BAJO"
    return EmployeeRisk(
        row_index=row_index, score=score, level=level, salary=salary, projection=projection, factors=factors
    )


def salary_level(monthly_salary: float) -> str:
    if monthly_salary > 50000:
        return "HIGH"
    if monthly_salary >= 20000:
        return "MEDIUM"
    return "LOW"


def funding_level(ratio: float, risk: RiskSettings) -> str:
    if ratio >= risk.funding_excellent:
        return "EXCELLENT"
    if ratio >= risk.funding_good:
        return "GOOD"
    if ratio >= risk.funding_moderate:
        return "MODERATE"
    return "CRITICAL"


class ActuarialRiskValidator:
    descriptor = AgentDescriptor(
        name="ActuarialRiskValidator",
        description="Individual actuarial risk scores, turnover, salary concentration and plan sustainability",
        priority=1,
        dependencies=("SalaryValidator", "ActuarialAgeValidator"),
        timeout=30.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    def assess(self, data: MappedData) -> List[EmployeeRisk]:
        """Risk assessment of every active employee with dates and salary."""
        reference = self.config.reference_date()
        assessments = []
        for record in data.active_personnel:
            salary = record.integrated_salary or record.base_salary
            if not salary or record.birth_date is None or record.hire_date is None:
                continue
            if record.birth_date > reference or record.hire_date > reference:
                continue
            age = calculate_age(record.birth_date, reference)
            service = calculate_service_years(record.hire_date, reference)
            projection = project_pension(age, service, salary, self.config.pension)
            assessments.append(score_employee(record.row_index, age, salary, projection, self.config.risk))
        return assessments

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        risk = self.config.risk
        assessments = self.assess(data)
        if not assessments:
            return []

        findings = []
        by_level: Dict[str, List[EmployeeRisk]] = defaultdict(list)
        for assessment in assessments:
            by_level[assessment.level].append(assessment)

        for assessment in by_level.get("CRÍTICO", []):
            findings.append(
                self.results.critical(
                    "actuarial_risk",
                    f"Critical actuarial risk (score {assessment.score}): {', '.join(assessment.factors)}",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    suggestion="Review this employee's data and liability projection individually",
                    rows=[assessment.row_index],
                    metadata={"score": assessment.score, "projection": assessment.projection.to_dict()},
                )
            )
        if by_level.get("ALTO"):
            rows = [a.row_index for a in by_level["ALTO"]]
            findings.append(
                self.results.warning(
                    "actuarial_risk",
                    f"High actuarial risk for {len(rows)} employees",
                    category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                    suggestion="Confirm ages, salaries and service of high-risk employees",
                    rows=rows,
                    metadata={"scores": {str(a.row_index): a.score for a in by_level["ALTO"]}},
                )
            )

        total_liability = sum(a.projection.present_value for a in assessments)
        high_share = (len(by_level.get("CRÍTICO", [])) + len(by_level.get("ALTO", []))) / len(assessments)
        summary_metadata = {
            "levels": {level: len(by_level.get(level, [])) for level in RISK_LEVELS},
            "total_present_value": round(total_liability, 2),
            "high_risk_share": round(high_share, 4),
        }
        summary_message = (
            f"Pension projections: {summary_metadata['levels']['CRÍTICO'] + summary_metadata['levels']['ALTO']} "
            f"high or critical risk employees of {len(assessments)}"
        )
        if high_share >= 0.2:
            findings.append(
                self.results.warning(
                    "actuarial_risk", summary_message, category=ValidationCategory.STATISTICAL_OUTLIER,
                    suggestion="Review high-risk cases and consider plan adjustments",
                    collection=Collection.POPULATION, metadata=summary_metadata,
                )
            )
        else:
            findings.append(
                self.results.info(
                    "actuarial_risk", summary_message, category=ValidationCategory.STATISTICAL_OUTLIER,
                    metadata=summary_metadata,
                )
            )

        findings.append(self._turnover(assessments))
        if len(assessments) >= risk.min_population:
            findings.extend(self._concentration(data))
            findings.append(self._sustainability(assessments, total_liability))
        else:
            logger.debug(
                f"Skipping concentration and sustainability checks for {len(assessments)} employees "
                f"(minimum {risk.min_population})"
            )
        return findings

    def _turnover(self, assessments: List[EmployeeRisk]):
        risk = self.config.risk
        bands = Counter(age_band(a.projection.age) for a in assessments)
        mean_age = sum(a.projection.age for a in assessments) / len(assessments)
        rate = risk.turnover_by_age.get(age_band(int(mean_age)), 0.20)
        mortality = sum(mortality_rate(a.projection.age) for a in assessments) / len(assessments)
        metadata = {
            "expected_turnover": rate,
            "mean_age": round(mean_age, 2),
            "age_bands": dict(bands),
            "mean_mortality_rate": round(mortality, 6),
        }
        message = f"Expected annual turnover {rate:.0%} for a mean age of {mean_age:.1f}"
        if rate > risk.turnover_concerning:
            return self.results.warning(
                "turnover", message, category=ValidationCategory.STATISTICAL_OUTLIER,
                suggestion="High expected turnover; consider retention programs and decrement assumptions",
                collection=Collection.POPULATION, metadata=metadata,
            )
        return self.results.info(
            "turnover", message, category=ValidationCategory.STATISTICAL_OUTLIER, metadata=metadata,
        )

    def _concentration(self, data: MappedData):
        risk = self.config.risk
        levels = Counter()
        for record in data.active_personnel:
            salary = record.integrated_salary or record.base_salary
            if salary:
                levels[salary_level(salary)] += 1
        total = sum(levels.values())
        if not total:
            return []
        concentrated = {level: count for level, count in levels.items() if count / total > risk.salary_concentration_threshold}
        if not concentrated:
            return []
        level, count = max(concentrated.items(), key=lambda item: item[1])
        return [
            self.results.warning(
                "integrated_salary",
                f"{count / total:.1%} of employees fall in the {level} salary band",
                category=ValidationCategory.STATISTICAL_OUTLIER,
                suggestion="Liability is concentrated in one salary band; confirm the salary data",
                collection=Collection.POPULATION,
                metadata={"salary_levels": dict(levels)},
            )
        ]

    def _sustainability(self, assessments: List[EmployeeRisk], total_liability: float):
        risk = self.config.risk
        n = len(assessments)
        mean_monthly = sum(a.salary for a in assessments) / n
        contributions = n * mean_monthly * 12 * risk.contribution_rate * risk.contribution_years
        ratio = contributions / total_liability if total_liability else float("inf")
        level = funding_level(ratio, risk)
        metadata = {
            "funding_ratio": round(ratio, 4) if total_liability else None,
            "estimated_contributions": round(contributions, 2),
            "total_liability": round(total_liability, 2),
            "projected_shortfall": round(max(0.0, total_liability - contributions), 2),
            "level": level,
        }
        message = f"Plan sustainability {level} (funding ratio {ratio:.1%})" if total_liability else "Plan has no projected liability"
        if level == "CRITICAL":
            return self.results.critical(
                "plan_sustainability", message, category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                suggestion="Projected liability far exceeds the contribution base; confirm salaries and ages",
                collection=Collection.POPULATION, metadata=metadata,
            )
        if level == "MODERATE":
            return self.results.warning(
                "plan_sustainability", message, category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                suggestion="Consider higher contributions or a benefit review",
                collection=Collection.POPULATION, metadata=metadata,
            )
        return self.results.info(
            "plan_sustainability", message, category=ValidationCategory.BUSINESS_RULE_VIOLATION, metadata=metadata,
        )
