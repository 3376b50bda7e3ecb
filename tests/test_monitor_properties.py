"""
Property-based tests for the session monitor.

Fakes are built inside each example rather than taken from fixtures, since
Hypothesis runs many examples per test function.
"""

import pytest
from hypothesis import given, strategies as st

from game_backlog_tracker.config import SessionConfig
from game_backlog_tracker.session.models import MonitorState
from game_backlog_tracker.session.monitor import SessionMonitor
from game_backlog_tracker.session.storage import MemoryStorage

from session_fakes import (
    FakeAuthService,
    FakeClock,
    FakeScheduler,
    RecordingNotifier,
    make_session,
)


def build_monitor(config=None):
    clock = FakeClock()
    service = FakeAuthService()
    notifier = RecordingNotifier()
    monitor = SessionMonitor(
        service,
        config=config or SessionConfig(check_interval=5, inactivity_timeout=60,
                                       warning_before_expiry=5),
        notifier=notifier,
        local_storage=MemoryStorage({'sb-ref-auth-token': '{}', 'theme': 'dark'}),
        session_storage=MemoryStorage(),
        clock=clock,
        scheduler_factory=FakeScheduler
    )
    monitor.attach()
    return monitor, service, notifier, clock


@pytest.mark.property
@given(
    expires_in=st.floats(min_value=0.5, max_value=30),
    ticks=st.lists(st.floats(min_value=0, max_value=0.5), min_size=1, max_size=20)
)
def test_warning_shown_at_most_once_without_activity(expires_in, ticks):
    monitor, service, notifier, clock = build_monitor()
    service.sign_in(make_session(clock, expires_in_minutes=expires_in))

    for minutes in ticks:
        if monitor.scheduler is None:
            break
        clock.advance(minutes=minutes)
        monitor.scheduler.run(SessionMonitor.VALIDATION_JOB_ID)

    assert notifier.titles.count('Session Expiring Soon') <= 1


@pytest.mark.property
@given(calls=st.integers(min_value=1, max_value=6))
def test_teardown_effects_happen_once(calls):
    monitor, service, notifier, clock = build_monitor()
    service.sign_in(make_session(clock, expires_in_minutes=600))

    results = [monitor.clean_expired_session() for _ in range(calls)]

    assert results == [True] + [False] * (calls - 1)
    assert service.sign_out_calls == 1
    assert notifier.titles == ['Session Expired']
    assert monitor.state == MonitorState.UNMONITORED


@pytest.mark.property
@given(
    timeout=st.integers(min_value=1, max_value=3000),
    idle=st.floats(min_value=0, max_value=6000)
)
def test_inactivity_teardown_iff_idle_reaches_timeout(timeout, idle):
    config = SessionConfig(inactivity_timeout=timeout, warning_before_expiry=1)
    monitor, service, notifier, clock = build_monitor(config)
    service.sign_in(make_session(clock, expires_in_minutes=100_000))

    clock.advance(minutes=idle)
    triggered = monitor.check_inactivity()

    expected = (clock() - monitor.last_activity) / 60 >= timeout
    assert triggered is expected
    assert (service.sign_out_calls == 1) is expected


@pytest.mark.property
@given(steps=st.lists(st.floats(min_value=-10, max_value=10), max_size=20))
def test_last_activity_is_monotonic(steps):
    monitor, service, notifier, clock = build_monitor()
    seen = [monitor.last_activity]

    for minutes in steps:
        clock.advance(minutes=minutes)
        monitor.update_activity()
        seen.append(monitor.last_activity)

    assert seen == sorted(seen)


@pytest.mark.property
@given(expires_in=st.floats(min_value=5.01, max_value=10_000))
def test_no_warning_outside_window(expires_in):
    monitor, service, notifier, clock = build_monitor()

    service.sign_in(make_session(clock, expires_in_minutes=expires_in))

    # Whole-second truncation of the expiry can pull it onto the boundary
    if (service.session.expires_at - int(clock())) / 60 > 5:
        assert notifier.notifications == []
        assert monitor.state == MonitorState.ACTIVE
