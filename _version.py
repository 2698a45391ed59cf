"""
Payroll Validation Engine Version Information

Centralized version management for the payroll validation engine and CLI.
Follows Semantic Versioning 2.0.0 (https://semver.org/)

Version format: MAJOR.MINOR.PATCH
- MAJOR: Incompatible changes to the validator contract or report format
- MINOR: New validators or rules in a backwards-compatible manner
- PATCH: Backwards-compatible rule fixes and constant-table updates

Version History:
- 1.0.0: Initial release
  - Identity, demographic, salary, labor-law, risk and anomaly validators
  - Dependency-aware concurrent orchestrator with per-validator deadlines
  - payroll-validate CLI
"""

from __future__ import annotations

__version__ = "1.0.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Release metadata
__release_date__ = "2026-10-19"
__release_name__ = "Payroll Validation Engine"

# Git information (can be populated by CI/CD or build scripts)
__git_sha__ = None


def get_full_version() -> str:
    """Get full version string including git info if available."""
    version = __version__
    if __git_sha__:
        version += f"+{__git_sha__[:7]}"
    return version


def get_version_dict() -> dict[str, str | tuple[int, int, int] | None]:
    """Get version information as a dictionary."""
    return {
        "version": __version__,
        "version_info": __version_info__,
        "release_date": __release_date__,
        "release_name": __release_name__,
        "git_sha": __git_sha__,
    }
