"""
Shared test configuration and fixtures.

This file contains pytest configuration that applies to all tests.
Test-type-specific fixtures are defined in their respective conftest.py files:
- tests/unit/conftest.py - Mock fixtures for unit tests
- tests/integration/conftest.py - Real app fixtures for integration tests
"""

from __future__ import annotations
