"""
DoseKeeper Test Suite
=====================

This package contains all tests for the DoseKeeper medication core.

Test Structure:
- test_services/: Service tests against an in-memory SQLite database
- test_tools/: Schedule time, reminder protocol and notification center tests
- conftest.py: Shared pytest fixtures

Running Tests:
    # Run all tests
    pytest

    # Run specific test module
    pytest tests/test_services/

    # Run with verbose output
    pytest -v
"""

# Test configuration
TEST_DATABASE_URL = "sqlite:///:memory:"

__all__ = [
    "TEST_DATABASE_URL",
]
