"""Validation settings models.

Every statutory table and threshold used by the validators lives here so a
single versioned value can be injected into each validator at construction.
Monetary amounts are MXN; salaries in records are monthly, statutory tables
are daily.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _lookup_by_year(table: Dict[int, float], year: int) -> float:
    """Exact year, else the latest year not after it, else the earliest entry."""
    if year in table:
        return table[year]
    earlier = [y for y in table if y <= year]
    if earlier:
        return table[max(earlier)]
    return table[min(table)]


class MinimumWageSettings(BaseModel):
    """Daily statutory minimum wage (salario minimo) by year."""
    model_config = ConfigDict(frozen=True)

    general_daily: Dict[int, float] = Field(
        default_factory=lambda: {
            2015: 70.10,
            2016: 73.04,
            2017: 80.04,
            2018: 88.36,
            2019: 102.68,
            2020: 123.22,
            2021: 141.70,
            2022: 172.87,
            2023: 207.44,
            2024: 248.93,
            2025: 278.80,
            2026: 315.04,
        },
        description="General-zone daily minimum wage by year",
    )
    border_zone_daily: Dict[int, float] = Field(
        default_factory=lambda: {
            2019: 176.72,
            2020: 185.56,
            2021: 213.39,
            2022: 260.34,
            2023: 312.41,
            2024: 374.89,
            2025: 419.88,
            2026: 440.87,
        },
        description="Northern border free-zone daily minimum wage by year",
    )
    days_per_month: float = Field(default=30.0, gt=0, le=31, description="Days used to convert daily wages to monthly")

    @field_validator("general_daily", "border_zone_daily")
    @classmethod
    def _non_empty(cls, value: Dict[int, float]) -> Dict[int, float]:
        if not value:
            raise ValueError("minimum wage table must not be empty")
        if any(v <= 0 for v in value.values()):
            raise ValueError("minimum wage values must be positive")
        return value

    def daily_for_year(self, year: int, *, border_zone: bool = False) -> float:
        table = self.border_zone_daily if border_zone else self.general_daily
        return _lookup_by_year(table, year)

    def monthly_for_year(self, year: int, *, border_zone: bool = False) -> float:
        return self.daily_for_year(year, border_zone=border_zone) * self.days_per_month


class SocialSecuritySettings(BaseModel):
    """Social-security (IMSS) parameters."""
    model_config = ConfigDict(frozen=True)

    uma_daily: Dict[int, float] = Field(
        default_factory=lambda: {
            2020: 86.88,
            2021: 89.62,
            2022: 96.22,
            2023: 103.74,
            2024: 108.57,
            2025: 113.14,
            2026: 117.31,
        },
        description="Daily UMA (Unidad de Medida y Actualizacion) by year",
    )
    contribution_cap_umas: float = Field(default=25.0, gt=0, description="Contribution cap expressed in UMAs")
    min_registration_year: int = Field(default=1943, description="IMSS was founded in 1943")
    max_subdelegation: int = Field(default=97, ge=1, le=99)
    registration_year_tolerance: int = Field(default=5, ge=0, description="Allowed years between IMSS registration and hire")
    subdelegation_concentration_min_population: int = Field(default=50, ge=1)
    registration_year_share_threshold: float = Field(default=0.30, ge=0, le=1)
    registration_year_min_count: int = Field(default=10, ge=1)

    def contribution_cap_daily(self, year: int) -> float:
        return _lookup_by_year(self.uma_daily, year) * self.contribution_cap_umas


class DemographicSettings(BaseModel):
    """Age, date and identity tolerance thresholds."""
    model_config = ConfigDict(frozen=True)

    min_working_age: int = Field(default=16, ge=0, le=30)
    max_hire_age: int = Field(default=70, ge=30, le=100)
    extreme_age: int = Field(default=75, ge=50, le=120)
    max_plausible_age: int = Field(default=125, ge=80, le=150)
    tax_id_max_age: int = Field(default=80, ge=50, le=120, description="Age derived from a tax ID above which a warning is raised")
    max_termination_age: int = Field(default=80, ge=50, le=120)
    max_service_years: int = Field(default=50, ge=1, le=80)
    earliest_hire_year: int = Field(default=1950, ge=1900)
    century_threshold: int = Field(default=30, ge=0, le=99, description="Two-digit years at or below this value decode to the 2000s")
    birth_date_tolerance_days: int = Field(default=1, ge=0, description="Tolerance between declared and identity-derived birth dates")
    critical_day_delta: int = Field(default=30, ge=0, description="Birth-date deltas above this are critical in temporal reconciliation")
    retirement_wave_age: int = Field(default=60, ge=40, le=80)
    retirement_wave_threshold: float = Field(default=0.15, ge=0, le=1)
    knowledge_risk_high: float = Field(default=0.40, ge=0, le=1)
    knowledge_risk_medium: float = Field(default=0.20, ge=0, le=1)
    pay_gap_moderate: float = Field(default=0.05, ge=0, le=1)
    pay_gap_inequitable: float = Field(default=0.15, ge=0, le=1)
    long_tenure_years: int = Field(default=8, ge=1, description="Service years counted as long tenure for knowledge-transfer risk")
    legacy_tenure_years: int = Field(default=20, ge=1)


class PensionSettings(BaseModel):
    """Pension eligibility and benefit projection assumptions."""
    model_config = ConfigDict(frozen=True)

    normal_retirement_age: int = Field(default=65, ge=50, le=80)
    early_retirement_age: int = Field(default=60, ge=45, le=80)
    required_service_years: int = Field(default=25, ge=1, le=50)
    accrual_rate: float = Field(default=0.025, gt=0, le=0.1, description="Benefit accrual per year of service")
    benefit_cap: float = Field(default=0.80, gt=0, le=1, description="Lifetime ceiling on the accrual percentage")
    max_accrual_years: int = Field(default=25, ge=1, le=50)
    discount_rate: float = Field(default=0.075, ge=0, le=0.5)
    salary_growth_rate: float = Field(default=0.04, ge=0, le=0.5)
    inflation_rate: float = Field(default=0.03, ge=0, le=0.5)
    payout_years: int = Field(default=20, ge=1, le=60, description="Payout horizon used to discount the projected benefit")

    @model_validator(mode="after")
    def _early_before_normal(self) -> "PensionSettings":
        if self.early_retirement_age > self.normal_retirement_age:
            raise ValueError("early_retirement_age must not exceed normal_retirement_age")
        return self


class SalarySettings(BaseModel):
    """Salary plausibility and outlier thresholds."""
    model_config = ConfigDict(frozen=True)

    iqr_multiplier: float = Field(default=1.5, gt=0, le=10)
    skewness_threshold: float = Field(default=2.0, gt=0)
    cv_threshold: float = Field(default=1.5, gt=0)
    max_integration_ratio: float = Field(default=3.0, gt=1)
    min_integration_ratio: float = Field(default=1.05, ge=1)
    min_outlier_population: int = Field(default=4, ge=4, description="Minimum salaries needed before IQR outliers are computed")
    employee_type_bands: Dict[str, List[float]] = Field(
        default_factory=lambda: {
            "EJECUTIVO": [50000, 500000],
            "CONFIDENCIAL": [30000, 300000],
            "CONFIANZA": [20000, 200000],
            "SUPERVISOR": [15000, 100000],
            "ADMINISTRATIVO": [8000, 50000],
            "OPERATIVO": [6000, 30000],
            "SINDICALIZADO": [6000, 50000],
            "VENDEDOR": [6000, 80000],
        },
        description="Expected monthly base salary [min, max] by employee type",
    )
    position_bands: Dict[str, List[float]] = Field(
        default_factory=lambda: {
            "GERENTE": [80000, 200000],
            "DIRECTOR": [150000, 400000],
            "JEFE": [40000, 100000],
            "COORDINADOR": [30000, 80000],
            "SUPERVISOR": [25000, 60000],
            "ANALISTA": [20000, 50000],
            "ASISTENTE": [15000, 35000],
            "AUXILIAR": [10000, 25000],
            "OPERADOR": [8000, 20000],
            "OBRERO": [8000, 18000],
        },
        description="Expected monthly base salary [min, max] by position keyword; the first keyword found in the position wins",
    )
    senior_service_years: int = Field(default=15, ge=1)
    senior_min_wage_multiple: float = Field(default=1.2, ge=1, description="Long-tenure employees paid below this multiple of minimum wage are flagged")
    severance_tolerance: float = Field(default=1.2, ge=1, description="Allowed excess over the statutory severance estimate")
    seniority_days_per_year: int = Field(default=12, ge=1)
    seniority_wage_cap_multiple: float = Field(default=2.0, gt=0)
    indemnification_base_days: int = Field(default=90, ge=0)
    indemnification_days_per_year: int = Field(default=20, ge=0)

    @field_validator("employee_type_bands", "position_bands")
    @classmethod
    def _bands_are_ranges(cls, value: Dict[str, List[float]]) -> Dict[str, List[float]]:
        for key, band in value.items():
            if len(band) != 2 or band[0] > band[1]:
                raise ValueError(f"salary band for {key} must be [min, max]")
        return {k.upper(): v for k, v in value.items()}


class LaborLawSettings(BaseModel):
    """Federal Labor Law (LFT) minimums."""
    model_config = ConfigDict(frozen=True)

    vacation_days_first_years: List[int] = Field(
        default_factory=lambda: [12, 14, 16, 18, 20],
        description="Vacation days for service years 1..N (2023 reform schedule)",
    )
    vacation_increment: int = Field(default=2, ge=0)
    vacation_block_years: int = Field(default=5, ge=1)
    vacation_premium_rate: float = Field(default=0.25, ge=0, le=1)
    annual_bonus_days: int = Field(default=15, ge=0)
    max_weekly_hours: float = Field(default=48.0, gt=0)

    def vacation_days_for_service(self, service_years: int) -> int:
        """Statutory minimum vacation days for completed service years."""
        if service_years < 1:
            return 0
        schedule = self.vacation_days_first_years
        if service_years <= len(schedule):
            return schedule[service_years - 1]
        blocks = (service_years - len(schedule) - 1) // self.vacation_block_years + 1
        return schedule[-1] + self.vacation_increment * blocks


class RiskSettings(BaseModel):
    """Actuarial risk scoring weights and sustainability thresholds."""
    model_config = ConfigDict(frozen=True)

    senior_age: int = Field(default=55)
    mid_age: int = Field(default=45)
    senior_age_points: int = Field(default=30)
    mid_age_points: int = Field(default=20)
    high_salary: float = Field(default=100000, gt=0)
    high_salary_points: int = Field(default=25)
    low_service_probability: float = Field(default=0.5, ge=0, le=1)
    low_service_probability_points: int = Field(default=15)
    high_present_value: float = Field(default=1_000_000, gt=0)
    high_present_value_points: int = Field(default=20)
    critical_score: int = Field(default=70)
    high_score: int = Field(default=50)
    medium_score: int = Field(default=30)
    turnover_by_age: Dict[str, float] = Field(
        default_factory=lambda: {
            "15-25": 0.35,
            "26-35": 0.25,
            "36-45": 0.15,
            "46-55": 0.08,
            "56-65": 0.05,
            "66+": 0.03,
        },
        description="Expected annual turnover by age band",
    )
    turnover_concerning: float = Field(default=0.25, ge=0, le=1)
    salary_concentration_threshold: float = Field(default=0.60, ge=0, le=1)
    contribution_rate: float = Field(default=0.15, ge=0, le=1)
    contribution_years: int = Field(default=20, ge=1)
    funding_excellent: float = Field(default=1.2)
    funding_good: float = Field(default=1.0)
    funding_moderate: float = Field(default=0.8)
    min_population: int = Field(default=10, ge=1, description="Minimum population for the sustainability check")


class AnomalySettings(BaseModel):
    """Anomaly detector thresholds."""
    model_config = ConfigDict(frozen=True)

    mass_hiring_threshold: int = Field(default=10, ge=2)
    sequential_share_threshold: float = Field(default=0.10, ge=0, le=1)
    zscore_threshold: float = Field(default=3.0, gt=0)
    max_salary_wage_multiple: float = Field(default=100.0, gt=1, description="Monthly salary above this multiple of monthly minimum wage is flagged")
    young_executive_age: int = Field(default=25)
    executive_keywords: List[str] = Field(
        default_factory=lambda: ["DIRECTOR", "GERENTE", "PRESIDENTE", "CEO", "VP", "VICEPRESIDENTE"]
    )
    multi_signal_min_validators: int = Field(default=2, ge=2)


class DuplicateSettings(BaseModel):
    """Thresholds for spotting one person recorded more than once."""
    model_config = ConfigDict(frozen=True)

    near_match_threshold: float = Field(default=0.92, gt=0, le=1, description="Combined name and birth-date similarity for a probable duplicate")
    name_weight: float = Field(default=0.6, ge=0, le=1, description="Weight of name similarity; birth-date similarity takes the rest")
    birth_date_window_days: int = Field(default=1, ge=0, le=30, description="Largest birth-date difference compared for near matches")
    max_reported_pairs: int = Field(default=15, ge=1)


class PositionSettings(BaseModel):
    """Position title catalog: job families, hierarchy levels and title rules."""
    model_config = ConfigDict(frozen=True)

    categories: Dict[str, List[str]] = Field(
        default_factory=lambda: {
            "DIRECTIVO": ["DIRECTOR", "PRESIDENTE", "CEO", "VICEPRESIDENTE"],
            "GERENCIAL": ["GERENTE", "MANAGER", "COORDINADOR", "JEFE", "SUPERVISOR"],
            "PROFESIONAL": ["INGENIERO", "CONTADOR", "ANALISTA", "ESPECIALISTA", "CONSULTOR", "ABOGADO"],
            "TECNICO": ["TECNICO", "OPERADOR", "MECANICO", "ELECTRICISTA", "SOLDADOR"],
            "ADMINISTRATIVO": ["AUXILIAR", "SECRETARIA", "ASISTENTE", "RECEPCIONISTA", "CAPTURISTA"],
            "OPERATIVO": ["OBRERO", "OPERARIO", "ALMACENISTA", "CHOFER", "VIGILANTE", "CONSERJE"],
            "VENTAS": ["VENDEDOR", "PROMOTOR", "EJECUTIVO DE VENTAS", "REPRESENTANTE"],
        },
        description="Job family -> title keywords; the family with most keyword hits wins",
    )
    hierarchy_levels: Dict[str, List[str]] = Field(
        default_factory=lambda: {
            "C_LEVEL": ["CEO", "CFO", "CTO", "PRESIDENTE", "DIRECTOR GENERAL"],
            "DIRECTOR": ["DIRECTOR", "VICEPRESIDENTE"],
            "GERENTE": ["GERENTE", "MANAGER"],
            "JEFE": ["JEFE", "COORDINADOR", "SUPERVISOR"],
            "ESPECIALISTA": ["ESPECIALISTA", "SENIOR", "LEAD"],
            "EJECUTIVO": ["EJECUTIVO", "ANALISTA"],
            "AUXILIAR": ["AUXILIAR", "JUNIOR", "ASISTENTE"],
            "OPERATIVO": ["OPERARIO", "TECNICO", "OBRERO"],
        },
        description="Title keywords per hierarchy level, most senior first",
    )
    inversion_tolerance: float = Field(default=1.10, ge=1, description="Junior level average pay above this multiple of a senior level is flagged")
    spread_threshold: float = Field(default=0.5, gt=0, description="(max - min) / median base salary within one title")
    min_title_length: int = Field(default=2, ge=1)
    max_title_length: int = Field(default=100, ge=10)
    high_turnover_count: int = Field(default=3, ge=2)
    management_levels: int = Field(default=4, ge=1, description="Hierarchy levels counted as management, from the top")

    @field_validator("categories", "hierarchy_levels")
    @classmethod
    def _uppercase_keywords(cls, value: Dict[str, List[str]]) -> Dict[str, List[str]]:
        if not value:
            raise ValueError("keyword catalog must not be empty")
        return {k.upper(): [kw.upper() for kw in v] for k, v in value.items()}


class CompletenessSettings(BaseModel):
    """Field completeness thresholds."""
    model_config = ConfigDict(frozen=True)

    warning_fill_rate: float = Field(default=0.95, ge=0, le=1)
    critical_fill_rate: float = Field(default=0.50, ge=0, le=1)
    mandatory_active_fields: List[str] = Field(
        default_factory=lambda: ["name", "tax_id", "social_security_id", "birth_date", "hire_date", "base_salary", "integrated_salary"]
    )
    mandatory_termination_fields: List[str] = Field(
        default_factory=lambda: ["name", "birth_date", "hire_date", "termination_date", "termination_cause"]
    )


class OrchestratorSettings(BaseModel):
    """Execution settings for the validation orchestrator."""
    model_config = ConfigDict(frozen=True)

    max_workers: int = Field(default=8, ge=1, le=64, description="Maximum number of validators running at once")
    timeout_overrides: Dict[str, float] = Field(default_factory=dict, description="Per-validator deadline overrides in seconds")

    @field_validator("timeout_overrides")
    @classmethod
    def _positive_timeouts(cls, value: Dict[str, float]) -> Dict[str, float]:
        for name, seconds in value.items():
            if seconds <= 0:
                raise ValueError(f"timeout override for {name} must be positive")
        return value


class ValidationConfig(BaseModel):
    """Top-level, versioned configuration injected into every validator."""

    model_config = ConfigDict(extra="allow", frozen=True)

    version: str = Field(default="2026.1", description="Constant-table vintage")
    evaluation_date: Optional[date] = Field(default=None, description="Reference date for ages and future-date checks; today when unset")
    border_zone: bool = Field(default=False, description="Apply northern border free-zone minimum wages")

    minimum_wage: MinimumWageSettings = Field(default_factory=MinimumWageSettings)
    social_security: SocialSecuritySettings = Field(default_factory=SocialSecuritySettings)
    demographics: DemographicSettings = Field(default_factory=DemographicSettings)
    pension: PensionSettings = Field(default_factory=PensionSettings)
    salary: SalarySettings = Field(default_factory=SalarySettings)
    labor_law: LaborLawSettings = Field(default_factory=LaborLawSettings)
    risk: RiskSettings = Field(default_factory=RiskSettings)
    anomaly: AnomalySettings = Field(default_factory=AnomalySettings)
    duplicates: DuplicateSettings = Field(default_factory=DuplicateSettings)
    positions: PositionSettings = Field(default_factory=PositionSettings)
    completeness: CompletenessSettings = Field(default_factory=CompletenessSettings)
    orchestrator: OrchestratorSettings = Field(default_factory=OrchestratorSettings)

    def reference_date(self) -> date:
        return self.evaluation_date or date.today()

    def monthly_minimum_wage(self, year: Optional[int] = None) -> float:
        year = year or self.reference_date().year
        return self.minimum_wage.monthly_for_year(year, border_zone=self.border_zone)

    def daily_minimum_wage(self, year: Optional[int] = None) -> float:
        year = year or self.reference_date().year
        return self.minimum_wage.daily_for_year(year, border_zone=self.border_zone)
