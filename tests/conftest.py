# tests/conftest.py
"""Shared test fixtures.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/engine/
"""

import os
import shutil
from pathlib import Path

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings

from waypoint.core.clock import MockClock
from waypoint.core.logging import configure_logging

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


@pytest.fixture(autouse=True)
def _reset_logging() -> None:
    """Route logs through a fresh stderr handler for every test."""
    structlog.reset_defaults()
    configure_logging(json_output=False, level="INFO")


@pytest.fixture
def clock() -> MockClock:
    """Mock clock starting at 2026-01-01T00:00:00Z."""
    return MockClock(start_ms=1_767_225_600_000)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    (root / "packages").mkdir(parents=True)
    return root
