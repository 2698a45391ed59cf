"""
Validator contract and result helpers.

A validator is any object exposing an ``AgentDescriptor`` and a
``validate(data, upstream=None)`` method returning a list of
``ValidationResult``. There is no base class to inherit from; concrete
validators compose the stateless helpers in ``payroll_validation.utils`` and
the ``ResultBuilder`` below.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections import defaultdict
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    runtime_checkable,
)

from ..exceptions import PayrollValidationError, ValidatorExecutionError
from ..models import (
    AgentDescriptor,
    Collection,
    EmployeeRecord,
    MappedData,
    Severity,
    ValidationCategory,
    ValidationResult,
)

logger = logging.getLogger(__name__)

UpstreamResults = Mapping[str, Sequence[ValidationResult]]


@runtime_checkable
class Validator(Protocol):
    """Unit contract for one family of rules."""

    descriptor: AgentDescriptor

    def validate(
        self, data: MappedData, upstream: Optional[UpstreamResults] = None
    ) -> List[ValidationResult]:
        """Inspect the snapshot and return findings.

        Args:
            data: Immutable snapshot for this run
            upstream: Results of this validator's declared dependencies that
                have already completed (possibly a SYSTEM_ERROR result)
        """
        ...


def accepts_upstream(validator: Any) -> bool:
    """Whether ``validator.validate`` takes the upstream results argument."""
    try:
        params = inspect.signature(validator.validate).parameters
    except (TypeError, ValueError):
        return False
    if "upstream" in params:
        return True
    return any(p.kind is inspect.Parameter.VAR_KEYWORD for p in params.values())


def system_error_result(agent: str, error: PayrollValidationError) -> ValidationResult:
    """Single critical result standing in for a validator that failed."""
    hint = error.resolution_hints[0] if error.resolution_hints else None
    suggestion = (
        f"{hint.title}: {hint.description}"
        if hint
        else f"Inspect the logs for '{agent}' and re-run validation"
    )
    return ValidationResult(
        agent=agent,
        field="system",
        message=error.message,
        severity=Severity.CRITICAL,
        category=ValidationCategory.SYSTEM_ERROR,
        suggestion=suggestion,
        collection=Collection.POPULATION,
        metadata=error.to_dict(),
    )


def capture_failures(method: Callable[..., List[ValidationResult]]) -> Callable[..., List[ValidationResult]]:
    """Turn an exception escaping ``validate`` into one SYSTEM_ERROR result."""

    @functools.wraps(method)
    def wrapper(self, data: MappedData, upstream: Optional[UpstreamResults] = None) -> List[ValidationResult]:
        name = self.descriptor.name
        try:
            return list(method(self, data, upstream))
        except Exception as exc:
            logger.exception(f"Validator {name} raised while validating")
            return [system_error_result(name, ValidatorExecutionError(name, exc))]

    return wrapper


class ResultBuilder:
    """Creates results stamped with one validator's name."""

    def __init__(self, agent: str):
        self.agent = agent

    def _make(
        self,
        severity: Severity,
        field: str,
        message: str,
        category: ValidationCategory,
        suggestion: Optional[str],
        rows: Sequence[int],
        collection: Collection,
        metadata: Optional[Mapping[str, Any]],
    ) -> ValidationResult:
        return ValidationResult(
            agent=self.agent,
            field=field,
            message=message,
            severity=severity,
            category=category,
            suggestion=suggestion,
            affected_rows=tuple(rows),
            collection=collection,
            metadata=dict(metadata or {}),
        )

    def critical(
        self,
        field: str,
        message: str,
        *,
        category: ValidationCategory,
        suggestion: str,
        rows: Sequence[int] = (),
        collection: Collection = Collection.ACTIVE,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> ValidationResult:
        return self._make(Severity.CRITICAL, field, message, category, suggestion, rows, collection, metadata)

    def warning(
        self,
        field: str,
        message: str,
        *,
        category: ValidationCategory,
        suggestion: Optional[str] = None,
        rows: Sequence[int] = (),
        collection: Collection = Collection.ACTIVE,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> ValidationResult:
        return self._make(Severity.WARNING, field, message, category, suggestion, rows, collection, metadata)

    def info(
        self,
        field: str,
        message: str,
        *,
        category: ValidationCategory,
        suggestion: Optional[str] = None,
        rows: Sequence[int] = (),
        collection: Collection = Collection.POPULATION,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> ValidationResult:
        return self._make(Severity.INFO, field, message, category, suggestion, rows, collection, metadata)


def iter_collections(data: MappedData) -> Iterator[Tuple[Collection, Sequence[EmployeeRecord]]]:
    yield Collection.ACTIVE, data.active_personnel
    yield Collection.TERMINATIONS, data.terminations


def find_duplicates(pairs: Iterable[Tuple[Optional[str], int]]) -> Dict[str, List[int]]:
    """Map each value seen more than once to the rows holding it."""
    rows: Dict[str, List[int]] = defaultdict(list)
    for value, row in pairs:
        if value:
            rows[value].append(row)
    return {value: found for value, found in rows.items() if len(found) > 1}


def rows_flagged_by(results: Sequence[ValidationResult], collection: Collection = Collection.ACTIVE) -> List[int]:
    """Rows referenced by non-info results of the given collection."""
    rows = set()
    for result in results:
        if result.severity is Severity.INFO or result.collection is not collection:
            continue
        rows.update(result.affected_rows)
    return sorted(rows)
