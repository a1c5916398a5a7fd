"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before anything imports the settings module.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("RATE_LIMIT_MAX_REQUESTS", "5")
os.environ.setdefault("RATE_LIMIT_WINDOW_SIZE_MINUTES", "1")

import pytest  # noqa: E402

from petclinic.core import rate_limit as rate_limit_module  # noqa: E402


@pytest.fixture(autouse=True)
def reset_rate_limiter(monkeypatch: pytest.MonkeyPatch) -> None:
    """Give every test a fresh counter store."""
    monkeypatch.setattr(rate_limit_module, "_limiter", None)
    monkeypatch.setattr(rate_limit_module, "_limiter_config", None)
