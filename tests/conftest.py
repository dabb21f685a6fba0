"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import SessionTimingConfig  # noqa: E402
from src.engine import DrillRunner, FakeClock  # noqa: E402
from src.storage import FactMasteryStore, JsonStore, SettingsStore, StatisticsRecorder  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (engine + stores on disk)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def clock():
    """Manually advanced clock starting at t=0."""
    return FakeClock()


@pytest.fixture
def rng():
    """Seeded random source so queues are reproducible."""
    return random.Random(1234)


@pytest.fixture
def data_dir(tmp_path):
    """Empty data directory for JSON documents."""
    path = tmp_path / "drills-data"
    path.mkdir()
    return path


@pytest.fixture
def json_store(data_dir):
    return JsonStore(data_dir)


@pytest.fixture
def mastery(json_store, clock):
    return FactMasteryStore(json_store, clock)


@pytest.fixture
def recorder(json_store, clock):
    return StatisticsRecorder(json_store, clock=clock)


@pytest.fixture
def settings_store(json_store):
    return SettingsStore(json_store)


@pytest.fixture
def timing():
    return SessionTimingConfig()


@pytest.fixture
def runner(mastery, recorder, clock, rng, timing):
    """Drill runner wired to on-disk stores and the fake clock."""
    return DrillRunner(mastery, recorder, clock=clock, rng=rng, timing=timing)
