"""Test suite for VantageCheck.

This package contains hermetic tests following the pytest framework,
plus the live endpoint suite under tests/live.

Testing Philosophy:
    - Mock Playwright with pytest-mock for network isolation
    - Focus coverage on the checks: a check that never fails is worthless
    - Live tests only run when an API key is configured
"""
