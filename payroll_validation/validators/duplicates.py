"""
Duplicate people.

Identifier uniqueness (RFC, CURP, NSS) is enforced by the identity
validators. This validator looks for one person captured under different
identifiers:

* exact matches on normalized name and birth date
* near matches: similar names born within a day of each other
* CURP or NSS shared between the active and termination lists when the RFC
  differs (a shared RFC is already reported by the tax ID validator)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from difflib import SequenceMatcher
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import ValidationConfig
from ..models import AgentDescriptor, Collection, EmployeeRecord, MappedData, ValidationCategory
from ..utils import clean_identifier, extract_digits, name_tokens, strip_accents
from .base import ResultBuilder, UpstreamResults, capture_failures, find_duplicates

logger = logging.getLogger(__name__)


def person_key(name: Optional[str]) -> str:
    """Name as upper-case, accent-free, single-spaced tokens."""
    if not name:
        return ""
    return " ".join(name_tokens(strip_accents(name)))


def name_similarity(a: str, b: str) -> float:
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    return SequenceMatcher(None, a, b).ratio()


def birth_date_similarity(a: Optional[date], b: Optional[date]) -> float:
    if a is None or b is None:
        return 0.0
    days = abs((a - b).days)
    if days == 0:
        return 1.0
    if days <= 1:
        return 0.9
    if days <= 7:
        return 0.7
    if days <= 30:
        return 0.5
    return 0.0


def integrity_grade(score: int) -> str:
    if score > 90:
        return "EXCELENTE"
    if score > 75:
        return "BUENO"
    if score > 60:
        return "REGULAR"
    return "DEFICIENTE"


class DuplicatePersonDetector:
    descriptor = AgentDescriptor(
        name="DuplicatePersonDetector",
        description="Same person under different identifiers, near-duplicate names, active/terminated overlaps",
        priority=13,
        timeout=35.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        records = data.active_personnel
        if not records and not data.terminations:
            return []

        groups = self.same_person_groups(records)
        pairs = self.near_matches(records)
        cross = self.cross_collection_matches(records, data.terminations)
        shared = self._shared_identifier_count(records)

        findings = []
        limit = self.config.duplicates.max_reported_pairs
        if groups:
            findings.append(
                self.results.warning(
                    "name",
                    f"{len(groups)} people appear more than once with the same name and birth date",
                    category=ValidationCategory.CONSISTENCY_VIOLATION,
                    suggestion="Compare RFC, CURP and NSS of the rows and merge them if they are one employee",
                    rows=sorted(row for group in groups for row in group["rows"]),
                    metadata={"groups": groups[:limit]},
                )
            )
        if pairs:
            findings.append(
                self.results.warning(
                    "name",
                    f"{len(pairs)} pairs of employees with near-identical names and birth dates",
                    category=ValidationCategory.CONSISTENCY_VIOLATION,
                    suggestion="Review each pair manually; typos in the name can hide a duplicated employee",
                    rows=sorted({row for pair in pairs for row in pair["rows"]}),
                    metadata={
                        "pairs": pairs[:limit],
                        "average_similarity": round(sum(p["similarity"] for p in pairs) / len(pairs), 3),
                    },
                )
            )
        for field_name, matches in cross.items():
            findings.append(
                self.results.critical(
                    field_name,
                    f"{len(matches)} {field_name.replace('_', ' ')} values appear both as active and terminated",
                    category=ValidationCategory.CONSISTENCY_VIOLATION,
                    suggestion="An employee cannot be active and terminated at once; fix the status or the identifier",
                    collection=Collection.POPULATION,
                    metadata={"matches": matches[:limit]},
                )
            )

        score = 100
        if shared:
            score -= 40
        if groups:
            score -= 20
        if pairs:
            score -= 10
        if cross:
            score -= 20
        findings.append(
            self.results.info(
                "name",
                f"Record uniqueness: {integrity_grade(score)} ({score}/100)",
                category=ValidationCategory.CONSISTENCY_VIOLATION,
                metadata={
                    "integrity_score": score,
                    "integrity": integrity_grade(score),
                    "shared_identifiers": shared,
                    "same_person_groups": len(groups),
                    "near_pairs": len(pairs),
                    "cross_matches": sum(len(m) for m in cross.values()),
                    "records_compared": len(records),
                },
            )
        )
        return findings

    def same_person_groups(self, records: Sequence[EmployeeRecord]) -> List[Dict]:
        """Rows sharing normalized name and birth date."""
        by_person: Dict[Tuple[str, date], List[EmployeeRecord]] = defaultdict(list)
        for record in records:
            key = person_key(record.name)
            if key and record.birth_date is not None:
                by_person[(key, record.birth_date)].append(record)
        return [
            {
                "name": name,
                "birth_date": birth.isoformat(),
                "rows": [r.row_index for r in members],
                "tax_ids": sorted({r.tax_id for r in members if r.tax_id}),
            }
            for (name, birth), members in sorted(by_person.items())
            if len(members) > 1
        ]

    def near_matches(self, records: Sequence[EmployeeRecord]) -> List[Dict]:
        """Pairs above the combined similarity threshold, most similar first.

        Records are sorted by birth date so each one is only compared with
        those born inside the configured window.
        """
        settings = self.config.duplicates
        dated = sorted(
            (r for r in records if r.birth_date is not None and person_key(r.name)),
            key=lambda r: (r.birth_date, r.row_index),
        )
        pairs = []
        for i, left in enumerate(dated):
            left_key = person_key(left.name)
            for right in dated[i + 1:]:
                if (right.birth_date - left.birth_date).days > settings.birth_date_window_days:
                    break
                right_key = person_key(right.name)
                if left_key == right_key and left.birth_date == right.birth_date:
                    continue
                similarity = settings.name_weight * name_similarity(left_key, right_key) + (
                    1 - settings.name_weight
                ) * birth_date_similarity(left.birth_date, right.birth_date)
                if similarity >= settings.near_match_threshold:
                    pairs.append(
                        {
                            "rows": sorted([left.row_index, right.row_index]),
                            "names": [left.name, right.name],
                            "similarity": round(similarity, 3),
                        }
                    )
        pairs.sort(key=lambda p: (-p["similarity"], p["rows"]))
        return pairs

    def cross_collection_matches(
        self, active: Sequence[EmployeeRecord], terminations: Sequence[EmployeeRecord]
    ) -> Dict[str, List[Dict]]:
        """CURP and NSS values present in both lists whose RFCs differ."""
        found: Dict[str, List[Dict]] = {}
        for field_name, clean in (("population_id", clean_identifier), ("social_security_id", extract_digits)):
            by_value = {}
            for record in active:
                value = clean(getattr(record, field_name))
                if value:
                    by_value.setdefault(value, record)
            matches = []
            for record in terminations:
                value = clean(getattr(record, field_name))
                other = by_value.get(value) if value else None
                if other is None:
                    continue
                if other.tax_id and clean_identifier(other.tax_id) == clean_identifier(record.tax_id):
                    continue
                matches.append(
                    {"value": value, "active_row": other.row_index, "termination_row": record.row_index}
                )
            if matches:
                found[field_name] = matches
        if found:
            logger.debug(f"Identifiers in both collections: {sorted(found)}")
        return found

    @staticmethod
    def _shared_identifier_count(records: Sequence[EmployeeRecord]) -> int:
        total = 0
        for field_name, clean in (
            ("tax_id", clean_identifier),
            ("population_id", clean_identifier),
            ("social_security_id", extract_digits),
        ):
            total += len(find_duplicates((clean(getattr(r, field_name)), r.row_index) for r in records))
        return total
