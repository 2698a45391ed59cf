"""
Payroll Validation CLI Package

A Rich-based CLI for the payroll validation engine: loads a payroll snapshot,
runs every validator and renders the findings in the terminal.
"""

from .main import app
from _version import __version__, get_full_version, get_version_dict

__all__ = ["app", "__version__", "get_full_version", "get_version_dict"]
