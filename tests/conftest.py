"""
Pytest configuration and fixtures for alias supervisor tests.
"""

import pytest
import structlog
from structlog.contextvars import clear_contextvars

from alias_runtime.core.config import Settings
from alias_runtime.core.models import parse_definitions
from alias_supervisor.supervisor import Supervisor


@pytest.fixture(autouse=True)
def reset_structlog():
    """
    Restore structlog defaults after every test so a logger configured
    against a captured stream does not leak into later tests.
    """
    yield
    structlog.reset_defaults()
    clear_contextvars()


@pytest.fixture
def settings():
    """Settings with a short grace period to keep shutdown tests fast."""
    return Settings(grace_period_seconds=0.5)


@pytest.fixture
def make_supervisor(settings):
    """Build a supervisor from raw alias definitions."""
    def _make(raw, grace_period=None, **kwargs):
        return Supervisor(parse_definitions(raw), settings=settings, grace_period=grace_period, **kwargs)
    return _make
