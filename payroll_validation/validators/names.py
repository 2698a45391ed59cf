"""Name quality checks and sex inference for records without a declared sex."""

from __future__ import annotations

import re
from collections import defaultdict
from typing import Dict, List, Optional

from ..config import ValidationConfig
from ..constants import PLACEHOLDER_NAMES
from ..models import AgentDescriptor, Collection, MappedData, ValidationCategory
from ..utils import infer_sex_from_name, name_tokens
from .base import ResultBuilder, UpstreamResults, capture_failures, iter_collections

_DIGITS = re.compile(r"\d")


def is_placeholder_name(name: str) -> bool:
    normalized = " ".join(name_tokens(name))
    if normalized in PLACEHOLDER_NAMES:
        return True
    if _DIGITS.search(name):
        return True
    tokens = name_tokens(name)
    return bool(tokens) and all(token in PLACEHOLDER_NAMES for token in tokens)


class NameAnalyzer:
    descriptor = AgentDescriptor(
        name="NameAnalyzer",
        description="Missing, placeholder and incomplete names; sex inferred from given names",
        priority=3,
        timeout=25.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        findings = []
        for collection, records in iter_collections(data):
            issues: Dict[str, List[int]] = defaultdict(list)
            recommendations: Dict[int, str] = {}

            for record in records:
                if not record.name or not record.name.strip():
                    issues["missing"].append(record.row_index)
                    continue
                if is_placeholder_name(record.name):
                    issues["placeholder"].append(record.row_index)
                    continue
                if len(name_tokens(record.name)) < 2:
                    issues["incomplete"].append(record.row_index)

                if record.declared_sex is None:
                    inferred = infer_sex_from_name(record.name)
                    if inferred is not None:
                        recommendations[record.row_index] = inferred
                    else:
                        issues["undetermined_sex"].append(record.row_index)

            if issues.get("missing"):
                findings.append(
                    self.results.warning(
                        "name",
                        f"{len(issues['missing'])} {collection.value} records have no name",
                        category=ValidationCategory.MISSING_DATA,
                        suggestion="Capture the full name as it appears on official identification",
                        rows=issues["missing"],
                        collection=collection,
                    )
                )
            if issues.get("placeholder"):
                findings.append(
                    self.results.warning(
                        "name",
                        f"{len(issues['placeholder'])} {collection.value} records carry placeholder or test names",
                        category=ValidationCategory.FORMAT_INVALID,
                        suggestion="Replace placeholder names with the employees' real names",
                        rows=issues["placeholder"],
                        collection=collection,
                    )
                )
            if issues.get("incomplete"):
                findings.append(
                    self.results.warning(
                        "name",
                        f"{len(issues['incomplete'])} {collection.value} names have a single word",
                        category=ValidationCategory.FORMAT_INVALID,
                        suggestion="Include given names and surnames",
                        rows=issues["incomplete"],
                        collection=collection,
                    )
                )
            if recommendations:
                rows = sorted(recommendations)
                findings.append(
                    self.results.warning(
                        "declared_sex",
                        f"{len(rows)} {collection.value} records have no declared sex; "
                        f"a value was inferred from the given name",
                        category=ValidationCategory.MISSING_DATA,
                        suggestion="Accept or override the inferred sex (H/M) listed in the metadata",
                        rows=rows,
                        collection=collection,
                        metadata={"inferred_sex": {str(row): recommendations[row] for row in rows}},
                    )
                )
            if issues.get("undetermined_sex"):
                findings.append(
                    self.results.warning(
                        "declared_sex",
                        f"{len(issues['undetermined_sex'])} {collection.value} records have no declared sex "
                        f"and it cannot be inferred",
                        category=ValidationCategory.MISSING_DATA,
                        suggestion="Capture the sex (H/M) needed for mortality assumptions",
                        rows=issues["undetermined_sex"],
                        collection=collection,
                    )
                )

        total = len(data.active_personnel)
        if total:
            declared = sum(1 for r in data.active_personnel if r.declared_sex)
            findings.append(
                self.results.info(
                    "declared_sex",
                    f"Declared sex available for {declared} of {total} active employees",
                    category=ValidationCategory.MISSING_DATA,
                    collection=Collection.POPULATION,
                    metadata={"declared": declared, "total": total},
                )
            )
        return findings
