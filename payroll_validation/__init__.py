"""
Payroll validation engine.

Validates active-personnel and termination snapshots used in Mexican actuarial
valuations: identity documents, dates and demographics, salaries, labor-law
compliance, actuarial risk and anomalies. Validators are composed through a
dependency graph and merged into one ``ValidationReport``.
"""

from .config import ValidationConfig, build_validation_config, load_validation_config
from .exceptions import (
    ConfigurationError,
    DependencyCycleError,
    ErrorCategory,
    ErrorSeverity,
    ExecutionContext,
    InputDataError,
    InvalidConfigurationError,
    PayrollValidationError,
    ResolutionHint,
    ValidatorExecutionError,
    ValidatorTimeoutError,
)
from .logger import JSONFormatter, ProductionLogger, get_logger
from .models import (
    AgentDescriptor,
    Collection,
    EmployeeRecord,
    MappedData,
    ResultStatus,
    Severity,
    TerminationRecord,
    ValidationCategory,
    ValidationResult,
)
from .normalization import normalize_mapped_data, normalize_record
from .orchestrator import ValidationOrchestrator, validate_snapshot
from .reporting import (
    ExecutionStatus,
    RunState,
    ValidationReport,
    ValidationSummary,
    ValidatorExecution,
)
from .validators import default_validators

__all__ = [
    # Config
    "ValidationConfig",
    "build_validation_config",
    "load_validation_config",
    # Errors
    "ConfigurationError",
    "DependencyCycleError",
    "ErrorCategory",
    "ErrorSeverity",
    "ExecutionContext",
    "InputDataError",
    "InvalidConfigurationError",
    "PayrollValidationError",
    "ResolutionHint",
    "ValidatorExecutionError",
    "ValidatorTimeoutError",
    # Logging
    "JSONFormatter",
    "ProductionLogger",
    "get_logger",
    # Models
    "AgentDescriptor",
    "Collection",
    "EmployeeRecord",
    "MappedData",
    "ResultStatus",
    "Severity",
    "TerminationRecord",
    "ValidationCategory",
    "ValidationResult",
    # Normalization
    "normalize_mapped_data",
    "normalize_record",
    # Orchestration
    "ValidationOrchestrator",
    "validate_snapshot",
    "default_validators",
    # Reporting
    "ExecutionStatus",
    "RunState",
    "ValidationReport",
    "ValidationSummary",
    "ValidatorExecution",
]
