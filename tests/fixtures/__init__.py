"""
Shared Test Fixtures for the Payroll Validation Engine

- records.py: record builders and snapshot fixtures
- config.py: configuration fixtures pinned to a fixed evaluation date
"""

from .config import (
    config_file,
    fast_timeout_config,
    validation_config,
)
from .records import (
    century_mismatch_snapshot,
    clean_record,
    single_record_snapshot,
    small_population,
)

__all__ = [
    "config_file",
    "fast_timeout_config",
    "validation_config",
    "century_mismatch_snapshot",
    "clean_record",
    "single_record_snapshot",
    "small_population",
]
