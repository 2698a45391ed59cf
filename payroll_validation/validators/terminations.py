"""Termination records: dates, causes and turnover profile."""

from __future__ import annotations

from collections import Counter
from datetime import timedelta
from typing import List, Optional

from ..actuarial import age_band, tenure_bucket
from ..config import ValidationConfig
from ..constants import VALID_TERMINATION_CAUSES
from ..models import AgentDescriptor, Collection, MappedData, ValidationCategory
from ..utils import calculate_age, calculate_service_years
from .base import ResultBuilder, UpstreamResults, capture_failures


class TerminationValidator:
    descriptor = AgentDescriptor(
        name="TerminationValidator",
        description="Termination dates and causes, turnover by age and tenure",
        priority=14,
        dependencies=("HireDateValidator", "SalaryValidator", "LaborLawValidator"),
        timeout=30.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        records = data.terminations
        if not records:
            return []
        reference = self.config.reference_date()

        missing_date: List[int] = []
        future_date: List[int] = []
        missing_cause: List[int] = []
        unknown_cause: List[int] = []
        causes: Counter = Counter()
        ages: Counter = Counter()
        tenures: Counter = Counter()
        last_year = 0

        for record in records:
            if record.termination_cause is None:
                missing_cause.append(record.row_index)
            else:
                causes[record.termination_cause] += 1
                if record.termination_cause not in VALID_TERMINATION_CAUSES:
                    unknown_cause.append(record.row_index)

            if record.termination_date is None:
                missing_date.append(record.row_index)
                continue
            if record.termination_date > reference:
                future_date.append(record.row_index)
                continue
            if record.termination_date > reference - timedelta(days=365):
                last_year += 1
            if record.birth_date is not None and record.birth_date < record.termination_date:
                ages[age_band(calculate_age(record.birth_date, record.termination_date))] += 1
            if record.hire_date is not None and record.hire_date <= record.termination_date:
                tenures[tenure_bucket(calculate_service_years(record.hire_date, record.termination_date))] += 1

        findings = []
        if missing_date:
            findings.append(
                self.results.critical(
                    "termination_date",
                    f"{len(missing_date)} termination records have no valid termination date",
                    category=ValidationCategory.MISSING_DATA,
                    suggestion="Capture the termination date; decrement experience cannot be measured without it",
                    rows=missing_date,
                    collection=Collection.TERMINATIONS,
                )
            )
        if future_date:
            findings.append(
                self.results.critical(
                    "termination_date",
                    f"{len(future_date)} termination dates are after the valuation date",
                    category=ValidationCategory.CONSISTENCY_VIOLATION,
                    suggestion="Move scheduled terminations back to the active list",
                    rows=future_date,
                    collection=Collection.TERMINATIONS,
                )
            )
        if missing_cause:
            findings.append(
                self.results.warning(
                    "termination_cause",
                    f"{len(missing_cause)} termination records have no cause",
                    category=ValidationCategory.MISSING_DATA,
                    suggestion="Capture the cause (resignation, dismissal, retirement, death ...)",
                    rows=missing_cause,
                    collection=Collection.TERMINATIONS,
                )
            )
        if unknown_cause:
            findings.append(
                self.results.warning(
                    "termination_cause",
                    f"{len(unknown_cause)} termination causes are not in the catalog",
                    category=ValidationCategory.FORMAT_INVALID,
                    suggestion=f"Use one of: {', '.join(sorted(VALID_TERMINATION_CAUSES))}",
                    rows=unknown_cause,
                    collection=Collection.TERMINATIONS,
                    metadata={"causes": sorted({c for c in causes if c not in VALID_TERMINATION_CAUSES})},
                )
            )

        active = len(data.active_personnel)
        rate = last_year / active if active else None
        findings.append(
            self.results.info(
                "termination_date",
                f"{len(records)} terminations, {last_year} in the last 12 months"
                + (f" (turnover {rate:.1%})" if rate is not None else ""),
                category=ValidationCategory.STATISTICAL_OUTLIER,
                metadata={
                    "causes": dict(causes.most_common()),
                    "by_age_band": dict(sorted(ages.items())),
                    "by_tenure": dict(tenures),
                    "last_12_months": last_year,
                    "turnover_rate": round(rate, 4) if rate is not None else None,
                },
            )
        )
        return findings
