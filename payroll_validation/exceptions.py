"""
Structured exception hierarchy with execution context for the payroll validation engine.

All exceptions include:
- correlation_id: Trace errors across a validation run
- execution_context: Run, stage, validator, record
- resolution_hints: Actionable suggestions for common issues
- severity: CRITICAL, ERROR, RECOVERABLE, WARNING

Data findings are never raised; they are reported as ValidationResult
objects. These exceptions cover configuration, input shape, scheduling and
validator execution failures.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
import uuid


class ErrorSeverity(str, Enum):
    """Error severity levels for triage and alerting"""
    CRITICAL = "critical"      # Run cannot produce a trustworthy report
    ERROR = "error"            # Validator or stage failure, requires intervention
    RECOVERABLE = "recoverable"  # Transient failure, retry possible
    WARNING = "warning"        # Non-blocking issue, may degrade quality


class ErrorCategory(str, Enum):
    """Error categories for diagnostics and resolution routing"""
    CONFIGURATION = "configuration"    # Invalid config, missing parameters
    INPUT_DATA = "input_data"          # Snapshot cannot be normalized
    DEPENDENCY = "dependency"          # Unknown validators, circular dependencies
    EXECUTION = "execution"            # Validator raised an exception
    TIMEOUT = "timeout"                # Validator exceeded its deadline


@dataclass
class ExecutionContext:
    """Execution context attached to every engine exception"""

    # Primary context
    run_id: Optional[str] = None
    stage: Optional[str] = None
    validator_name: Optional[str] = None

    # Data context
    collection: Optional[str] = None
    row_index: Optional[int] = None
    config_version: Optional[str] = None

    # Orchestration context
    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    layer: Optional[int] = None

    # Timing context
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    elapsed_seconds: Optional[float] = None
    timeout_seconds: Optional[float] = None

    # Additional metadata
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize context for logging and result metadata"""
        return {
            k: v for k, v in self.__dict__.items()
            if v is not None and not k.startswith('_')
        }

    def format_summary(self) -> str:
        """Human-readable one-line summary"""
        parts = []
        if self.run_id:
            parts.append(f"run={self.run_id}")
        if self.stage:
            parts.append(f"stage={self.stage}")
        if self.validator_name:
            parts.append(f"validator={self.validator_name}")
        if self.row_index is not None:
            parts.append(f"row={self.row_index}")
        if self.correlation_id:
            parts.append(f"correlation_id={self.correlation_id}")
        return " | ".join(parts)


@dataclass
class ResolutionHint:
    """Actionable resolution guidance for common error patterns"""

    title: str
    description: str
    steps: List[str]
    documentation_url: Optional[str] = None
    estimated_resolution_time: Optional[str] = None


class PayrollValidationError(Exception):
    """
    Base exception for the payroll validation engine with structured context.

    All engine exceptions inherit from this class to ensure consistent error
    handling and diagnostic information.
    """

    def __init__(
        self,
        message: str,
        *,
        context: Optional[ExecutionContext] = None,
        category: ErrorCategory = ErrorCategory.EXECUTION,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        resolution_hints: Optional[List[ResolutionHint]] = None,
        original_exception: Optional[BaseException] = None,
        **kwargs
    ):
        super().__init__(message)
        self.message = message
        self.context = context or ExecutionContext()
        self.category = category
        self.severity = severity
        self.resolution_hints = resolution_hints or []
        self.original_exception = original_exception
        self.additional_data = kwargs

    def format_diagnostic_message(self) -> str:
        """
        Format comprehensive diagnostic message for logs and user display.

        Returns multi-line formatted error with:
        - Error message and severity
        - Execution context
        - Resolution hints
        - Original exception (if available)
        """
        lines = [
            f"{'='*80}",
            f"ERROR: {self.message}",
            f"Severity: {self.severity.value.upper()} | Category: {self.category.value}",
            f"{'='*80}",
            "",
            "EXECUTION CONTEXT:",
        ]

        context_dict = self.context.to_dict()
        for key, value in context_dict.items():
            if key == 'metadata' and isinstance(value, dict):
                for meta_key, meta_value in value.items():
                    lines.append(f"  {meta_key}: {meta_value}")
            else:
                lines.append(f"  {key}: {value}")

        if self.resolution_hints:
            lines.append("")
            lines.append("RESOLUTION HINTS:")
            for i, hint in enumerate(self.resolution_hints, 1):
                lines.append(f"\n{i}. {hint.title}")
                lines.append(f"   {hint.description}")
                if hint.steps:
                    lines.append("   Steps:")
                    for step in hint.steps:
                        lines.append(f"     - {step}")
                if hint.documentation_url:
                    lines.append(f"   Docs: {hint.documentation_url}")
                if hint.estimated_resolution_time:
                    lines.append(f"   Est. Time: {hint.estimated_resolution_time}")

        if self.original_exception:
            lines.append("")
            lines.append("ORIGINAL EXCEPTION:")
            lines.append(f"  {type(self.original_exception).__name__}: {str(self.original_exception)}")

        lines.append("")
        lines.append(f"{'='*80}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for structured logging and result metadata"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "context": self.context.to_dict(),
            "resolution_hints": [
                {
                    "title": hint.title,
                    "description": hint.description,
                    "steps": hint.steps,
                    "documentation_url": hint.documentation_url,
                    "estimated_time": hint.estimated_resolution_time
                }
                for hint in self.resolution_hints
            ],
            "original_exception": str(self.original_exception) if self.original_exception else None,
            **self.additional_data
        }


# Configuration Errors
class ConfigurationError(PayrollValidationError):
    """Configuration-related errors"""
    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.CONFIGURATION, **kwargs)


class InvalidConfigurationError(ConfigurationError):
    """Invalid configuration parameter or structure"""
    def __init__(
        self,
        message: str,
        config_path: Optional[str] = None,
        **kwargs
    ):
        if config_path:
            message = f"{message} (config_path: {config_path})"
        if "resolution_hints" not in kwargs:
            kwargs["resolution_hints"] = [
                ResolutionHint(
                    title="Fix Validation Configuration",
                    description="The YAML file or an environment override does not match the settings schema",
                    steps=[
                        "Review the field named in the error message",
                        "Compare against config/validation_config.yaml",
                        "Check PV_* environment variables for stray overrides",
                    ],
                    estimated_resolution_time="5 minutes"
                )
            ]
        super().__init__(message, severity=ErrorSeverity.ERROR, **kwargs)


# Input Errors
class InputDataError(PayrollValidationError):
    """Snapshot could not be normalized into MappedData"""
    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        row_index: Optional[int] = None,
        **kwargs
    ):
        context = kwargs.pop("context", None) or ExecutionContext()
        if collection:
            context.collection = collection
        if row_index is not None:
            context.row_index = row_index
        super().__init__(
            message,
            context=context,
            category=ErrorCategory.INPUT_DATA,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


# Scheduling Errors
class DependencyCycleError(PayrollValidationError):
    """Validator dependency graph contains a cycle"""
    def __init__(self, message: str, cycle_members: Optional[List[str]] = None, **kwargs):
        self.cycle_members = sorted(cycle_members or [])
        if self.cycle_members:
            message = f"{message} (validators: {', '.join(self.cycle_members)})"
        if "resolution_hints" not in kwargs:
            kwargs["resolution_hints"] = [
                ResolutionHint(
                    title="Break Circular Dependency",
                    description="Validator dependencies must form a directed acyclic graph",
                    steps=[
                        "Inspect the dependencies declared by the listed validators",
                        "Remove the edge that closes the cycle",
                    ],
                    estimated_resolution_time="10 minutes"
                )
            ]
        super().__init__(
            message,
            category=ErrorCategory.DEPENDENCY,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


# Validator Execution Errors
class ValidatorExecutionError(PayrollValidationError):
    """A validator raised while processing the snapshot"""
    def __init__(self, validator_name: str, original_exception: BaseException, **kwargs):
        context = kwargs.pop("context", None) or ExecutionContext()
        context.validator_name = validator_name
        message = (
            f"Validator '{validator_name}' failed: "
            f"{type(original_exception).__name__}: {original_exception}"
        )
        super().__init__(
            message,
            context=context,
            category=ErrorCategory.EXECUTION,
            severity=ErrorSeverity.ERROR,
            original_exception=original_exception,
            **kwargs
        )
        self.validator_name = validator_name


class ValidatorTimeoutError(PayrollValidationError):
    """A validator exceeded its deadline and was abandoned"""
    def __init__(self, validator_name: str, timeout_seconds: float, **kwargs):
        context = kwargs.pop("context", None) or ExecutionContext()
        context.validator_name = validator_name
        context.timeout_seconds = timeout_seconds
        message = f"Validator '{validator_name}' exceeded its {timeout_seconds:g}s deadline"
        if "resolution_hints" not in kwargs:
            kwargs["resolution_hints"] = [
                ResolutionHint(
                    title="Increase Validator Timeout",
                    description="Large snapshots may need more time than the default deadline",
                    steps=[
                        f"Set orchestrator.timeout_overrides.{validator_name} in the configuration",
                        "Or split the snapshot and validate it in batches",
                    ],
                    estimated_resolution_time="5 minutes"
                )
            ]
        super().__init__(
            message,
            context=context,
            category=ErrorCategory.TIMEOUT,
            severity=ErrorSeverity.RECOVERABLE,
            **kwargs
        )
        self.validator_name = validator_name
        self.timeout_seconds = timeout_seconds
