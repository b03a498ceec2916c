"""Pytest configuration and shared fixtures."""

import pytest

from diagbus.container import reset_config
from diagbus.events import DiagnosticBus, reset_diagnostic_events_for_test


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(autouse=True)
def clean_shared_state():
    """Isolate the shared bus and global config between tests."""
    reset_diagnostic_events_for_test()
    reset_config()
    yield
    reset_diagnostic_events_for_test()
    reset_config()


@pytest.fixture
def bus():
    """A private bus with a fixed clock."""
    return DiagnosticBus(clock=lambda: 1_700_000_000_000)


@pytest.fixture
def received():
    """List-backed listener; the list is exposed as ``received.events``."""

    class Recorder:
        def __init__(self):
            self.events = []

        def __call__(self, event):
            self.events.append(event)

    return Recorder()
