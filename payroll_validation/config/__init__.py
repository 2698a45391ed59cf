"""Configuration module for the payroll validation engine.

Submodules:
    - settings: statutory tables and threshold models
    - loader: YAML loading with environment overrides
"""

from .settings import (
    AnomalySettings,
    CompletenessSettings,
    DemographicSettings,
    DuplicateSettings,
    LaborLawSettings,
    MinimumWageSettings,
    OrchestratorSettings,
    PensionSettings,
    PositionSettings,
    RiskSettings,
    SalarySettings,
    SocialSecuritySettings,
    ValidationConfig,
)
from .loader import (
    DEFAULT_CONFIG_PATH,
    build_validation_config,
    load_validation_config,
)

__all__ = [
    # Settings
    "AnomalySettings",
    "CompletenessSettings",
    "DemographicSettings",
    "DuplicateSettings",
    "LaborLawSettings",
    "MinimumWageSettings",
    "OrchestratorSettings",
    "PensionSettings",
    "PositionSettings",
    "RiskSettings",
    "SalarySettings",
    "SocialSecuritySettings",
    "ValidationConfig",
    # Loader
    "DEFAULT_CONFIG_PATH",
    "build_validation_config",
    "load_validation_config",
]
