"""
Pytest configuration and fixtures for session tests.
"""

import pytest
from hypothesis import settings, Verbosity

from game_backlog_tracker.config import SessionConfig
from game_backlog_tracker.session.monitor import SessionMonitor
from game_backlog_tracker.session.storage import MemoryStorage

from session_fakes import FakeAuthService, FakeClock, FakeScheduler, RecordingNotifier


settings.register_profile("session",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None
)
settings.load_profile("session")


def pytest_configure(config):
    config.addinivalue_line("markers", "property: property-based tests using Hypothesis")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def auth_service():
    return FakeAuthService()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def local_storage():
    return MemoryStorage({
        'sb-abcd-auth-token': '{"access_token": "x"}',
        'theme': 'dark',
        'backlog-sort': 'title',
    })


@pytest.fixture
def session_storage():
    return MemoryStorage({'session-draft': '{}', 'last-tab': 'library'})


@pytest.fixture
def monitor_config():
    return SessionConfig(
        check_interval=5,
        inactivity_timeout=60,
        warning_before_expiry=5,
        clear_storage_on_expiry=True,
    )


@pytest.fixture
def make_monitor(auth_service, notifier, clock, local_storage, session_storage, monitor_config):
    """Build monitors sharing the test's fakes; detached on teardown."""
    monitors = []

    def factory(config=None, service=None, **kwargs):
        options = dict(
            config=config or monitor_config,
            notifier=notifier,
            local_storage=local_storage,
            session_storage=session_storage,
            clock=clock,
            scheduler_factory=FakeScheduler,
        )
        options.update(kwargs)
        monitor = SessionMonitor(service or auth_service, **options)
        monitors.append(monitor)
        return monitor

    yield factory

    for monitor in monitors:
        monitor.detach()
        monitor.stop_monitoring()
