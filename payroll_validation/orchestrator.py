"""
Validation orchestrator.

Resolves validator descriptors into topological layers, runs each layer
concurrently under per-validator deadlines, isolates failures and merges the
results into one deterministically ordered report.

State machine::

    IDLE -> SCHEDULING -> RUNNING -> AGGREGATED -> {FAILED, COMPLETED}

A run moves to FAILED straight from SCHEDULING when the dependency graph has
a cycle, and from AGGREGATED when at least one validator failed or timed out.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .config import ValidationConfig
from .dependency_graph import DependencyGraph
from .exceptions import (
    DependencyCycleError,
    ExecutionContext,
    PayrollValidationError,
    ValidatorExecutionError,
    ValidatorTimeoutError,
)
from .logger import ProductionLogger
from .models import MappedData, ValidationCategory, ValidationResult
from .reporting import (
    ExecutionStatus,
    RunState,
    ValidationReport,
    ValidatorExecution,
    calculate_summary,
)
from .validators.base import Validator, accepts_upstream, system_error_result

logger = logging.getLogger(__name__)

_TRANSITIONS = {
    RunState.IDLE: {RunState.SCHEDULING},
    RunState.SCHEDULING: {RunState.RUNNING, RunState.FAILED},
    RunState.RUNNING: {RunState.AGGREGATED, RunState.FAILED},
    RunState.AGGREGATED: {RunState.COMPLETED, RunState.FAILED},
    RunState.COMPLETED: {RunState.SCHEDULING},
    RunState.FAILED: {RunState.SCHEDULING},
}


def _generate_run_id() -> str:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{timestamp}-{str(uuid.uuid4())[:8]}"


class ValidationOrchestrator:
    """Runs a set of validators over one immutable snapshot.

    Validators are independent: a dependency only delays its dependents until
    it has finished and exposes its results to them. A dependent still runs
    when its dependency failed, seeing the SYSTEM_ERROR result in place of
    real findings.

    One orchestrator instance runs one snapshot at a time.

    Example:
        >>> orchestrator = ValidationOrchestrator.with_defaults(config)
        >>> report = orchestrator.run(mapped_data)
        >>> report.summary.can_proceed
        False
    """

    def __init__(
        self,
        validators: Sequence[Validator],
        config: Optional[ValidationConfig] = None,
        *,
        run_logger: Optional[ProductionLogger] = None,
    ):
        self.config = config or ValidationConfig()
        self.run_logger = run_logger
        self.state = RunState.IDLE
        self._validators: Dict[str, Validator] = {}
        for validator in validators:
            name = validator.descriptor.name
            if name in self._validators:
                raise ValueError(f"Duplicate validator name: {name}")
            self._validators[name] = validator
        self._graph: Optional[DependencyGraph] = None

    @classmethod
    def with_defaults(
        cls,
        config: Optional[ValidationConfig] = None,
        *,
        run_logger: Optional[ProductionLogger] = None,
    ) -> "ValidationOrchestrator":
        """Orchestrator over the full built-in validator suite."""
        from .validators import default_validators

        config = config or ValidationConfig()
        return cls(default_validators(config), config, run_logger=run_logger)

    @property
    def validator_names(self) -> List[str]:
        return list(self._validators)

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def build_graph(self) -> DependencyGraph:
        return DependencyGraph.from_descriptors(v.descriptor for v in self._validators.values())

    def plan(self) -> List[List[str]]:
        """Execution layers without running anything."""
        return self.build_graph().execution_layers()

    def timeout_for(self, name: str) -> float:
        overrides = self.config.orchestrator.timeout_overrides
        return overrides.get(name, self._validators[name].descriptor.timeout)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(self, data: MappedData) -> ValidationReport:
        """Blocking entry point; use ``run_async`` from inside an event loop."""
        return asyncio.run(self.run_async(data))

    async def run_async(self, data: MappedData) -> ValidationReport:
        run_id = self.run_logger.run_id if self.run_logger else _generate_run_id()
        started_at = datetime.now()
        start = time.perf_counter()

        self._transition(RunState.SCHEDULING)
        try:
            self._graph = self.build_graph()
            order = self._graph.topological_sort()
            layers = self._graph.execution_layers()
        except DependencyCycleError as e:
            e.context.run_id = run_id
            e.context.stage = RunState.SCHEDULING.value
            self._emit("ERROR", "Validation scheduling failed", run_id=run_id, error=e.to_dict())
            self._transition(RunState.FAILED)
            raise

        self._emit(
            "INFO",
            f"Starting validation run with {len(order)} validators in {len(layers)} layers",
            run_id=run_id,
            config_version=self.config.version,
            active_records=len(data.active_personnel),
            termination_records=len(data.terminations),
            layers=layers,
        )
        self._transition(RunState.RUNNING)

        completed: Dict[str, List[ValidationResult]] = {}
        executions: Dict[str, ValidatorExecution] = {}
        # Concurrency is bounded by the semaphore; the pool never queues a submitted call
        slots = asyncio.Semaphore(self.config.orchestrator.max_workers)
        executor = ThreadPoolExecutor(max_workers=max(1, len(order)), thread_name_prefix="validator")
        try:
            for layer_number, layer in enumerate(layers):
                self._emit("DEBUG", f"Running layer {layer_number}: {', '.join(layer)}", run_id=run_id)
                outcomes = await asyncio.gather(
                    *(
                        self._run_validator(name, data, layer_number, completed, executor, slots, run_id)
                        for name in layer
                    )
                )
                for name, results, execution in outcomes:
                    completed[name] = results
                    executions[name] = execution
        except BaseException:
            self._transition(RunState.FAILED)
            raise
        finally:
            # Abandoned synchronous validators keep their thread; never block on them
            executor.shutdown(wait=False, cancel_futures=True)

        self._transition(RunState.AGGREGATED)
        ordered_results = tuple(result for name in order for result in completed[name])
        failed = tuple(
            name for name in order if executions[name].status is not ExecutionStatus.SUCCEEDED
        )
        summary = calculate_summary(data, ordered_results, failed)
        final_state = RunState.FAILED if failed else RunState.COMPLETED
        self._transition(final_state)

        duration = time.perf_counter() - start
        self._emit(
            "WARNING" if failed else "INFO",
            f"Validation run {final_state.value}: {summary.critical_errors} critical, "
            f"{summary.warnings} warnings, {summary.infos} info",
            run_id=run_id,
            duration_seconds=round(duration, 3),
            failed_validators=list(failed),
            can_proceed=summary.can_proceed,
        )

        return ValidationReport(
            run_id=run_id,
            state=final_state,
            results=ordered_results,
            summary=summary,
            executions=tuple(executions[name] for name in order),
            validator_order=tuple(order),
            config_version=self.config.version,
            started_at=started_at,
            duration_seconds=duration,
        )

    async def _run_validator(
        self,
        name: str,
        data: MappedData,
        layer: int,
        completed: Mapping[str, List[ValidationResult]],
        executor: ThreadPoolExecutor,
        slots: asyncio.Semaphore,
        run_id: str,
    ) -> Tuple[str, List[ValidationResult], ValidatorExecution]:
        validator = self._validators[name]
        timeout = self.timeout_for(name)
        upstream = {
            dep: tuple(completed[dep])
            for dep in sorted(self._graph.get_dependencies(name))
            if dep in completed
        }
        error: Optional[PayrollValidationError] = None
        status = ExecutionStatus.SUCCEEDED

        # The deadline starts once a slot is free, not while waiting for one
        async with slots:
            start = time.perf_counter()
            try:
                results = await asyncio.wait_for(
                    self._invoke(validator, data, upstream, executor), timeout=timeout
                )
            except asyncio.TimeoutError:
                status = ExecutionStatus.TIMED_OUT
                error = ValidatorTimeoutError(name, timeout, context=self._context(run_id, name, layer, start))
            except Exception as exc:
                status = ExecutionStatus.FAILED
                error = ValidatorExecutionError(name, exc, context=self._context(run_id, name, layer, start))
                logger.error(f"Validator {name} raised {type(exc).__name__}: {exc}", exc_info=exc)

        if error is not None:
            results = [system_error_result(name, error)]
        elif any(
            r.category is ValidationCategory.SYSTEM_ERROR and r.agent == name for r in results
        ):
            # The validator caught its own failure
            status = ExecutionStatus.FAILED

        duration = time.perf_counter() - start
        execution = ValidatorExecution(
            name=name,
            status=status,
            layer=layer,
            duration_seconds=duration,
            result_count=len(results),
            error=error.message if error else None,
        )
        level = "INFO" if status is ExecutionStatus.SUCCEEDED else "ERROR"
        self._emit(
            level,
            f"Validator {name} {status.value} in {duration:.3f}s with {len(results)} results",
            run_id=run_id,
            validator=name,
            layer=layer,
            status=status.value,
            duration_seconds=round(duration, 4),
            result_count=len(results),
        )
        return name, results, execution

    async def _invoke(
        self,
        validator: Validator,
        data: MappedData,
        upstream: Mapping[str, Tuple[ValidationResult, ...]],
        executor: ThreadPoolExecutor,
    ) -> List[ValidationResult]:
        call = (
            functools.partial(validator.validate, data, upstream)
            if accepts_upstream(validator)
            else functools.partial(validator.validate, data)
        )
        if inspect.iscoroutinefunction(validator.validate):
            results = await call()
        else:
            loop = asyncio.get_running_loop()
            results = await loop.run_in_executor(executor, call)

        results = list(results or [])
        for result in results:
            if not isinstance(result, ValidationResult):
                raise TypeError(
                    f"validate() must return ValidationResult objects, got {type(result).__name__}"
                )
        return results

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _context(self, run_id: str, name: str, layer: int, start: float) -> ExecutionContext:
        return ExecutionContext(
            run_id=run_id,
            stage=RunState.RUNNING.value,
            validator_name=name,
            layer=layer,
            config_version=self.config.version,
            elapsed_seconds=round(time.perf_counter() - start, 4),
        )

    def _transition(self, new_state: RunState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal orchestrator transition {self.state.value} -> {new_state.value}")
        logger.debug(f"Orchestrator state {self.state.value} -> {new_state.value}")
        self.state = new_state

    def _emit(self, level: str, message: str, **fields) -> None:
        if self.run_logger is not None:
            self.run_logger.log_event(level, message, **fields)
        else:
            logger.log(getattr(logging, level), message)


def validate_snapshot(
    data: MappedData,
    config: Optional[ValidationConfig] = None,
    *,
    run_logger: Optional[ProductionLogger] = None,
) -> ValidationReport:
    """Run the full built-in validator suite over ``data``."""
    return ValidationOrchestrator.with_defaults(config, run_logger=run_logger).run(data)
