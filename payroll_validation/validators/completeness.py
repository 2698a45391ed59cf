"""Field fill rates per collection and an overall completeness score."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from ..config import ValidationConfig
from ..models import AgentDescriptor, Collection, EmployeeRecord, MappedData, TerminationRecord, ValidationCategory
from .base import ResultBuilder, UpstreamResults, capture_failures, iter_collections


def is_filled(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def fill_rates(records: Sequence[EmployeeRecord], fields: Sequence[str]) -> Dict[str, float]:
    """Share of records holding a value for each field."""
    if not records:
        return {}
    return {
        name: sum(1 for record in records if is_filled(getattr(record, name, None))) / len(records)
        for name in fields
    }


class CompletenessAuditor:
    descriptor = AgentDescriptor(
        name="CompletenessAuditor",
        description="Fill rate of every canonical field and mandatory-field coverage",
        priority=12,
        timeout=30.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    def _fields(self, collection: Collection) -> List[str]:
        model = TerminationRecord if collection is Collection.TERMINATIONS else EmployeeRecord
        return [name for name in model.model_fields if name != "row_index"]

    def _mandatory(self, collection: Collection) -> List[str]:
        settings = self.config.completeness
        if collection is Collection.TERMINATIONS:
            return list(settings.mandatory_termination_fields)
        return list(settings.mandatory_active_fields)

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        settings = self.config.completeness
        findings = []
        scores: Dict[str, float] = {}
        all_rates: Dict[str, Dict[str, float]] = {}

        for collection, records in iter_collections(data):
            if not records:
                continue
            rates = fill_rates(records, self._fields(collection))
            all_rates[collection.value] = {name: round(rate, 4) for name, rate in rates.items()}
            mandatory = self._mandatory(collection)

            for name in mandatory:
                rate = rates.get(name, 0.0)
                if rate >= settings.warning_fill_rate:
                    continue
                missing = [r.row_index for r in records if not is_filled(getattr(r, name, None))]
                message = f"{name} is filled for {rate:.1%} of {collection.value} records"
                metadata = {"fill_rate": round(rate, 4), "missing": len(missing)}
                if rate < settings.critical_fill_rate:
                    findings.append(
                        self.results.critical(
                            name, message, category=ValidationCategory.MISSING_DATA,
                            suggestion=f"Most {collection.value} records lack {name}; check the column mapping of the source file",
                            rows=missing, collection=collection, metadata=metadata,
                        )
                    )
                else:
                    findings.append(
                        self.results.warning(
                            name, message, category=ValidationCategory.MISSING_DATA,
                            suggestion=f"Complete {name} for the listed records",
                            rows=missing, collection=collection, metadata=metadata,
                        )
                    )

            if mandatory:
                scores[collection.value] = sum(rates.get(name, 0.0) for name in mandatory) / len(mandatory)

        if not scores:
            return findings
        overall = sum(scores.values()) / len(scores)
        findings.append(
            self.results.info(
                "completeness",
                f"Mandatory-field completeness {overall:.1%}",
                category=ValidationCategory.MISSING_DATA,
                metadata={
                    "overall_score": round(overall, 4),
                    "by_collection": {k: round(v, 4) for k, v in scores.items()},
                    "fill_rates": all_rates,
                },
            )
        )
        return findings
