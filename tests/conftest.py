"""Root conftest.py for the acceptance harness test suite.

This file loads the harness plugin and registers project-wide markers.
"""

import pytest

pytest_plugins = ["pytester", "src.testing.plugin"]


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components in isolation"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that need a container runtime"
    )
