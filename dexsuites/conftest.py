"""
================================================================================
Suites Pytest Configuration
================================================================================

Registers the project-wide markers and tags collected tests by location.

================================================================================
"""

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )
    config.addinivalue_line(
        "markers", "P3: Low priority tests - extensive validation"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "regression: Full regression test suite"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests simulating user flows"
    )

    # Domain markers
    config.addinivalue_line(
        "markers", "ui: Browser-driven tests against DEX Manager"
    )
    config.addinivalue_line(
        "markers", "unit: Offline framework tests (no browser)"
    )

    # Feature markers
    config.addinivalue_line(
        "markers", "auth: Tests related to authentication"
    )
    config.addinivalue_line(
        "markers", "folder: Tests related to folder management"
    )
    config.addinivalue_line(
        "markers", "upload: Tests related to file uploads"
    )
    config.addinivalue_line(
        "markers", "content: Tests related to content operations"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-add 'ui' / 'unit' markers from the test location."""
    for item in items:
        path = str(item.fspath)
        if "ui_testing" in path:
            item.add_marker(pytest.mark.ui)
        elif "unit" in path:
            item.add_marker(pytest.mark.unit)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "DEX Manager Content Automation",
        "=" * 60,
        "",
    ]
