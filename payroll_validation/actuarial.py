"""
Simplified actuarial projections shared by the age and risk validators.

These are screening estimates used to flag data that would distort a
valuation, not a valuation method. Salaries are monthly; benefits and present
values are annual amounts in MXN.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .config import PensionSettings

TENURE_BUCKETS = (("SHORT", 5), ("MEDIUM", 15), ("LONG", 30), ("VETERAN", None))
STABILITY_WEIGHTS = {"SHORT": 1, "MEDIUM": 3, "LONG": 5, "VETERAN": 4}
AGE_BANDS = (("15-25", 25), ("26-35", 35), ("36-45", 45), ("46-55", 55), ("56-65", 65), ("66+", None))

MORTALITY_BASE = {"H": (0.008, 1.10), "M": (0.006, 1.08)}


@dataclass(frozen=True)
class PensionProjection:
    age: int
    service_years: int
    years_to_retirement: int
    projected_monthly_salary: float
    benefit_percentage: float
    annual_benefit: float
    present_value: float
    service_probability: float

    def to_dict(self):
        return {
            "age": self.age,
            "service_years": self.service_years,
            "years_to_retirement": self.years_to_retirement,
            "projected_monthly_salary": round(self.projected_monthly_salary, 2),
            "benefit_percentage": round(self.benefit_percentage, 4),
            "annual_benefit": round(self.annual_benefit, 2),
            "present_value": round(self.present_value, 2),
            "service_probability": round(self.service_probability, 4),
        }


def tenure_bucket(service_years: int) -> str:
    """SHORT 0-5, MEDIUM 6-15, LONG 16-30, VETERAN above 30."""
    for name, upper in TENURE_BUCKETS:
        if upper is None or service_years <= upper:
            return name
    return "VETERAN"


def age_band(age: int) -> str:
    for name, upper in AGE_BANDS:
        if upper is None or age <= upper:
            return name
    return "66+"


def stability_index(bucket_counts) -> float:
    """Weighted mean of tenure buckets (1 = all short tenure, 5 = all long)."""
    total = sum(bucket_counts.values())
    if total == 0:
        return 0.0
    weighted = sum(STABILITY_WEIGHTS[bucket] * count for bucket, count in bucket_counts.items())
    return round(weighted / total, 2)


def pension_eligibility(age: int, service_years: int, pension: PensionSettings) -> Tuple[int, str]:
    """Years until the nearest retirement eligibility and its type.

    Returns ``(0, "NORMAL")`` or ``(0, "EARLY")`` when already eligible.
    """
    normal = max(
        pension.normal_retirement_age - age,
        pension.required_service_years - service_years,
    )
    early = max(
        pension.early_retirement_age - age,
        pension.required_service_years - service_years,
    )
    if normal <= 0:
        return 0, "NORMAL"
    if early <= 0:
        return 0, "EARLY"
    return min(normal, early), "EARLY" if early < normal else "NORMAL"


def projection_band(years_to_eligibility: int) -> str:
    if years_to_eligibility <= 0:
        return "IMMEDIATE"
    if years_to_eligibility <= 5:
        return "NEXT_5_YEARS"
    if years_to_eligibility <= 10:
        return "NEXT_10_YEARS"
    return "LONG_TERM"


def annuity_present_value(annual_benefit: float, years: int, rate: float) -> float:
    """Present value of ``years`` end-of-year payments."""
    if rate == 0:
        return annual_benefit * years
    return sum(annual_benefit / (1 + rate) ** year for year in range(1, years + 1))


def service_probability(age: int, years_to_retirement: int) -> float:
    """Probability of remaining in service until retirement (floor 0.3)."""
    age_decline = max(0.0, (age - 25) * 0.005)
    time_decline = years_to_retirement * 0.02
    return max(0.3, 0.95 - age_decline - time_decline)


def mortality_rate(age: int, sex: Optional[str] = None) -> float:
    base, multiplier = MORTALITY_BASE.get(sex or "H", MORTALITY_BASE["H"])
    return base * multiplier ** max(0, age - 25)


def project_pension(
    age: int,
    service_years: int,
    monthly_salary: float,
    pension: PensionSettings,
) -> PensionProjection:
    """Project the normal-retirement benefit and its present value.

    The benefit is ``projected final salary * min(accrual years * accrual rate,
    cap)``. The present value discounts that annual benefit over
    ``payout_years`` at the discount rate.
    """
    years_to_retirement = max(0, pension.normal_retirement_age - age)
    projected = monthly_salary * (1 + pension.salary_growth_rate) ** years_to_retirement
    accrual_years = min(service_years + years_to_retirement, pension.max_accrual_years)
    percentage = min(accrual_years * pension.accrual_rate, pension.benefit_cap)
    annual_benefit = projected * 12 * percentage
    present_value = annuity_present_value(annual_benefit, pension.payout_years, pension.discount_rate)
    return PensionProjection(
        age=age,
        service_years=service_years,
        years_to_retirement=years_to_retirement,
        projected_monthly_salary=projected,
        benefit_percentage=percentage,
        annual_benefit=annual_benefit,
        present_value=present_value,
        service_probability=service_probability(age, years_to_retirement),
    )
