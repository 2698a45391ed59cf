"""Hire date presence, service length limits and hiring history."""

from __future__ import annotations

from collections import Counter, defaultdict
from typing import Dict, List, Optional

from ..config import ValidationConfig
from ..models import AgentDescriptor, Collection, MappedData, ValidationCategory
from ..statistics import describe
from ..utils import calculate_service_years
from .base import ResultBuilder, UpstreamResults, capture_failures, iter_collections


class HireDateValidator:
    descriptor = AgentDescriptor(
        name="HireDateValidator",
        description="Hire date presence, maximum service, earliest plausible hire and tenure profile",
        priority=5,
        dependencies=("BirthDateValidator",),
        timeout=25.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        demo = self.config.demographics
        reference = self.config.reference_date()
        findings = []
        service: List[int] = []
        hires_by_year: Counter = Counter()

        for collection, records in iter_collections(data):
            issues: Dict[str, List[int]] = defaultdict(list)
            for record in records:
                if record.hire_date is None:
                    issues["missing"].append(record.row_index)
                    continue
                if record.hire_date.year < demo.earliest_hire_year:
                    issues["too_early"].append(record.row_index)
                if collection is Collection.ACTIVE and record.hire_date <= reference:
                    years = calculate_service_years(record.hire_date, reference)
                    service.append(years)
                    hires_by_year[record.hire_date.year] += 1
                    if years > demo.max_service_years:
                        issues["long_service"].append(record.row_index)

            if issues.get("missing"):
                rows = issues["missing"]
                if collection is Collection.ACTIVE:
                    findings.append(
                        self.results.critical(
                            "hire_date",
                            f"{len(rows)} active records have no valid hire date",
                            category=ValidationCategory.MISSING_DATA,
                            suggestion="Capture the hire date; service cannot be valued without it",
                            rows=rows,
                            collection=collection,
                        )
                    )
                else:
                    findings.append(
                        self.results.warning(
                            "hire_date",
                            f"{len(rows)} termination records have no hire date",
                            category=ValidationCategory.MISSING_DATA,
                            suggestion="Capture the hire date to compute service at termination",
                            rows=rows,
                            collection=collection,
                        )
                    )
            if issues.get("too_early"):
                findings.append(
                    self.results.warning(
                        "hire_date",
                        f"Hire date before {demo.earliest_hire_year} ({len(issues['too_early'])} records)",
                        category=ValidationCategory.CONSISTENCY_VIOLATION,
                        suggestion="Check the century of the hire date",
                        rows=issues["too_early"],
                        collection=collection,
                    )
                )
            if issues.get("long_service"):
                findings.append(
                    self.results.warning(
                        "hire_date",
                        f"Service above {demo.max_service_years} years ({len(issues['long_service'])} records)",
                        category=ValidationCategory.BUSINESS_RULE_VIOLATION,
                        suggestion="Confirm the hire date or whether prior service was recognized",
                        rows=issues["long_service"],
                        collection=collection,
                    )
                )

        if service:
            stats = describe(service)
            findings.append(
                self.results.info(
                    "hire_date",
                    f"Active tenure: mean {stats.mean:.1f} years, median {stats.median:.1f}, "
                    f"maximum {stats.maximum:.0f}",
                    category=ValidationCategory.STATISTICAL_OUTLIER,
                    metadata={
                        "service_statistics": stats.to_dict(),
                        "hires_by_year": {str(year): count for year, count in sorted(hires_by_year.items())},
                    },
                )
            )
        return findings
