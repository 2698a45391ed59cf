"""
Position titles.

Titles are folded to accent-free upper case and matched by keyword against
the configured job families and hierarchy levels. On top of the
classification the validator checks that titles are real (no placeholders
or malformed text), that average pay does not rise as the hierarchy level
falls, and how widely pay varies within one title.
"""

from __future__ import annotations

import re
from collections import Counter, defaultdict
from typing import Dict, List, Optional, Tuple

import pandas as pd

from ..config import ValidationConfig
from ..constants import PLACEHOLDER_POSITIONS
from ..models import AgentDescriptor, Collection, MappedData, ValidationCategory
from ..utils import strip_accents
from .base import ResultBuilder, UpstreamResults, capture_failures

_TITLE_CHARS = re.compile(r"^[A-Z0-9 \-()/&.,]+$")

_FRAME_COLUMNS = ["row", "title", "category", "level_number", "level", "salary"]


def _has_keyword(title: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}\b", title) is not None


def clean_title(position: Optional[str]) -> str:
    if not position:
        return ""
    return " ".join(strip_accents(position).upper().split())


def title_problem(title: str, min_length: int = 2, max_length: int = 100) -> Optional[str]:
    if title in PLACEHOLDER_POSITIONS:
        return "placeholder"
    if len(title) < min_length:
        return "too_short"
    if len(title) > max_length:
        return "too_long"
    if not _TITLE_CHARS.match(title):
        return "invalid_characters"
    return None


def classify_title(title: str, categories: Dict[str, List[str]]) -> Optional[str]:
    """Job family with the most keyword hits; the first declared wins ties."""
    best, best_hits = None, 0
    for category, keywords in categories.items():
        hits = sum(1 for keyword in keywords if _has_keyword(title, keyword))
        if hits > best_hits:
            best, best_hits = category, hits
    return best


def hierarchy_level(title: str, levels: Dict[str, List[str]]) -> Optional[Tuple[int, str]]:
    """``(number, name)`` of the most senior level whose keyword is in the title."""
    for number, (level, keywords) in enumerate(levels.items(), start=1):
        if any(_has_keyword(title, keyword) for keyword in keywords):
            return number, level
    return None


class PositionClassifier:
    descriptor = AgentDescriptor(
        name="PositionClassifier",
        description="Position titles, job families, hierarchy levels and pay consistency across levels",
        priority=7,
        dependencies=("SalaryValidator",),
        timeout=25.0,
    )

    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()
        self.results = ResultBuilder(self.descriptor.name)

    @capture_failures
    def validate(self, data: MappedData, upstream: Optional[UpstreamResults] = None):
        settings = self.config.positions
        findings = []

        problems: Dict[str, List[int]] = defaultdict(list)
        samples: List[str] = []
        rows = []
        for record in data.active_personnel:
            title = clean_title(record.position)
            if not title:
                continue
            problem = title_problem(title, settings.min_title_length, settings.max_title_length)
            if problem:
                problems[problem].append(record.row_index)
                if len(samples) < 5:
                    samples.append(record.position)
                continue
            level = hierarchy_level(title, settings.hierarchy_levels)
            rows.append(
                {
                    "row": record.row_index,
                    "title": title,
                    "category": classify_title(title, settings.categories),
                    "level_number": level[0] if level else None,
                    "level": level[1] if level else None,
                    "salary": record.base_salary,
                }
            )

        if problems:
            flagged = sorted(row for found in problems.values() for row in found)
            findings.append(
                self.results.warning(
                    "position",
                    f"{len(flagged)} position titles are placeholders or malformed",
                    category=ValidationCategory.FORMAT_INVALID,
                    suggestion="Capture the employee's actual job title",
                    rows=flagged,
                    metadata={"problems": {k: len(v) for k, v in sorted(problems.items())}, "samples": samples},
                )
            )

        if rows:
            frame = pd.DataFrame(rows, columns=_FRAME_COLUMNS).astype({"level_number": float, "salary": float})
            findings.extend(self._hierarchy_inversions(frame))
            findings.extend(self._pay_spread(frame))
            findings.append(self._summary(frame, upstream))
        findings.extend(self._turnover(data.terminations))
        return findings

    def _hierarchy_inversions(self, frame: pd.DataFrame):
        tolerance = self.config.positions.inversion_tolerance
        leveled = frame.dropna(subset=["level_number", "salary"])
        if leveled.empty:
            return []
        stats = (
            leveled.groupby(["level_number", "level"])["salary"]
            .agg(["count", "mean"])
            .reset_index()
            .sort_values("level_number")
            .to_dict(orient="records")
        )

        inversions = []
        affected = set()
        for senior in stats:
            if senior["count"] < 2:
                continue
            for junior in stats:
                if junior["level_number"] <= senior["level_number"]:
                    continue
                if junior["mean"] > senior["mean"] * tolerance:
                    inversions.append(
                        {
                            "senior_level": senior["level"],
                            "junior_level": junior["level"],
                            "senior_average": round(float(senior["mean"]), 2),
                            "junior_average": round(float(junior["mean"]), 2),
                        }
                    )
                    affected.update(leveled.loc[leveled["level"] == junior["level"], "row"].tolist())
        if not inversions:
            return []
        return [
            self.results.warning(
                "base_salary",
                f"Average pay rises as the hierarchy level falls ({len(inversions)} level pairs)",
                category=ValidationCategory.CONSISTENCY_VIOLATION,
                suggestion="Check the position titles and salaries of the junior levels listed",
                rows=sorted(affected),
                metadata={"inversions": inversions},
            )
        ]

    def _pay_spread(self, frame: pd.DataFrame):
        threshold = self.config.positions.spread_threshold
        salaried = frame.dropna(subset=["salary"])
        if salaried.empty:
            return []
        grouped = salaried.groupby("title")["salary"].agg(["count", "min", "max", "median"])
        grouped = grouped[(grouped["count"] > 2) & (grouped["median"] > 0)]
        spread = (grouped["max"] - grouped["min"]) / grouped["median"]
        wide = spread[spread > threshold]
        if wide.empty:
            return []
        titles = {
            title: {
                "count": int(grouped.loc[title, "count"]),
                "min": round(float(grouped.loc[title, "min"]), 2),
                "max": round(float(grouped.loc[title, "max"]), 2),
                "median": round(float(grouped.loc[title, "median"]), 2),
                "spread": round(float(value), 4),
            }
            for title, value in wide.sort_index().items()
        }
        return [
            self.results.info(
                "base_salary",
                f"Pay varies by more than {threshold:.0%} of the median within {len(titles)} position titles",
                category=ValidationCategory.STATISTICAL_OUTLIER,
                rows=salaried.loc[salaried["title"].isin(list(titles)), "row"].tolist(),
                collection=Collection.ACTIVE,
                metadata={"titles": titles},
            )
        ]

    def _summary(self, frame: pd.DataFrame, upstream: Optional[UpstreamResults]):
        settings = self.config.positions
        total = len(frame)
        categories = {k: int(v) for k, v in frame["category"].fillna("UNCLASSIFIED").value_counts().sort_index().items()}
        levels = {k: int(v) for k, v in frame["level"].dropna().value_counts().sort_index().items()}
        management = int((frame["level_number"] <= settings.management_levels).sum())
        unclassified = sorted(frame.loc[frame["category"].isna(), "title"].unique().tolist())
        band_conflicts = sorted(
            {
                row
                for result in (upstream or {}).get("SalaryValidator", ())
                if "position_keyword" in result.metadata
                for row in result.affected_rows
            }
        )
        classified = total - int(frame["category"].isna().sum())
        return self.results.info(
            "position",
            f"{classified} of {total} position titles classified into {len(categories) - ('UNCLASSIFIED' in categories)} "
            f"job families",
            category=ValidationCategory.CONSISTENCY_VIOLATION,
            metadata={
                "categories": categories,
                "hierarchy_levels": levels,
                "unique_positions": int(frame["title"].nunique()),
                "management_ratio": round(management / total, 4),
                "span_of_control": round((total - management) / management, 1) if management else None,
                "unclassified_titles": unclassified[:10],
                "salary_band_conflicts": band_conflicts,
            },
        )

    def _turnover(self, terminations):
        counts = Counter(clean_title(r.position) for r in terminations if clean_title(r.position))
        if not counts:
            return []
        high = sorted(title for title, n in counts.items() if n >= self.config.positions.high_turnover_count)
        message = f"Terminations span {len(counts)} position titles"
        if high:
            message += f"; high turnover in {', '.join(high[:3])}"
        return [
            self.results.info(
                "position",
                message,
                category=ValidationCategory.STATISTICAL_OUTLIER,
                collection=Collection.TERMINATIONS,
                metadata={"by_position": dict(counts.most_common(10)), "high_turnover": high},
            )
        ]
