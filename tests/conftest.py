"""
Pytest Configuration for the Payroll Validation Engine
=======================================================

Root conftest.py - registers the shared fixtures in tests/fixtures/.
"""

import pytest

from tests.fixtures import *  # noqa: F401,F403


def pytest_collection_modifyitems(config, items):
    """Automatically add markers based on test location."""
    for item in items:
        if "/unit/" in item.nodeid:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in item.nodeid:
            item.add_marker(pytest.mark.integration)
