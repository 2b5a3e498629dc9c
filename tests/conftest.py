"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets TESTING so settings never pick up a developer's .env file.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"

# Defaults every test can rely on
os.environ.setdefault("DOCGATE_ENDPOINT_URL", "https://registry.test/api/v3/lk/documents/create")
os.environ.setdefault("DOCGATE_RATE_LIMIT_REQUESTS", "5")
os.environ.setdefault("DOCGATE_RATE_LIMIT_WINDOW_SECONDS", "1.0")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest


@pytest.fixture(autouse=True)
def _reset_package_logging():
    """Drop any docgate handler a test or factory installed."""
    from docgate.core.logging import reset_logging

    yield
    reset_logging()
