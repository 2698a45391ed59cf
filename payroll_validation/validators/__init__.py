"""Validator catalog.

Each module holds one family of rules. ``default_validators`` builds the
standard set in declaration order, which the orchestrator uses as the final
tie-breaker after dependencies and priority.
"""

from typing import List, Optional

from ..config import ValidationConfig
from .actuarial_age import ActuarialAgeValidator
from .actuarial_risk import ActuarialRiskValidator
from .anomaly import AnomalyDetector
from .base import ResultBuilder, UpstreamResults, Validator, capture_failures
from .birth_date import BirthDateValidator
from .completeness import CompletenessAuditor
from .demographics import DemographicCompositionValidator
from .duplicates import DuplicatePersonDetector
from .hire_date import HireDateValidator
from .labor_law import LaborLawValidator
from .names import NameAnalyzer
from .population_id import PopulationIdValidator
from .positions import PositionClassifier
from .salary import SalaryValidator
from .social_security import SocialSecurityValidator
from .tax_id import TaxIdValidator
from .temporal_consistency import TemporalConsistencyValidator
from .terminations import TerminationValidator

VALIDATOR_CLASSES = (
    TaxIdValidator,
    PopulationIdValidator,
    SocialSecurityValidator,
    NameAnalyzer,
    BirthDateValidator,
    HireDateValidator,
    ActuarialAgeValidator,
    TemporalConsistencyValidator,
    DemographicCompositionValidator,
    SalaryValidator,
    PositionClassifier,
    LaborLawValidator,
    ActuarialRiskValidator,
    TerminationValidator,
    DuplicatePersonDetector,
    AnomalyDetector,
    CompletenessAuditor,
)


def default_validators(config: Optional[ValidationConfig] = None) -> List[Validator]:
    """Instantiate every built-in validator with a shared configuration."""
    config = config or ValidationConfig()
    return [cls(config) for cls in VALIDATOR_CLASSES]


__all__ = [
    "VALIDATOR_CLASSES",
    "default_validators",
    "ResultBuilder",
    "UpstreamResults",
    "Validator",
    "capture_failures",
    "ActuarialAgeValidator",
    "ActuarialRiskValidator",
    "AnomalyDetector",
    "BirthDateValidator",
    "CompletenessAuditor",
    "DemographicCompositionValidator",
    "DuplicatePersonDetector",
    "HireDateValidator",
    "LaborLawValidator",
    "NameAnalyzer",
    "PopulationIdValidator",
    "PositionClassifier",
    "SalaryValidator",
    "SocialSecurityValidator",
    "TaxIdValidator",
    "TemporalConsistencyValidator",
    "TerminationValidator",
]
