"""Tests for the session web API."""

import pytest

from game_backlog_tracker.config import Config
from game_backlog_tracker.errors import AuthServiceError
from game_backlog_tracker.web.app import create_app

from session_fakes import FakeAuthService, FakeScheduler, auth_error, make_session


class PasswordAuthService(FakeAuthService):
    """Fake backend that also supports email/password sign-in."""

    PASSWORD = 'hunter2'

    def __init__(self, clock, session=None):
        super().__init__(session)
        self.clock = clock

    def sign_in_with_password(self, email, password):
        if email == 'offline@example.com':
            raise auth_error("Connection refused")
        if password != self.PASSWORD:
            raise AuthServiceError.from_exception(Exception("400 invalid_grant"), 'sign_in')
        session = make_session(self.clock, expires_in_minutes=600, email=email)
        self.sign_in(session)
        return session


@pytest.fixture
def make_app(clock, local_storage, session_storage, monitor_config):
    apps = []

    def factory(service):
        app = create_app(
            auth_service=service,
            session_config=monitor_config,
            local_storage=local_storage,
            session_storage=session_storage,
            clock=clock,
            scheduler_factory=FakeScheduler
        )
        app.config['TESTING'] = True
        apps.append(app)
        return app

    yield factory

    for app in apps:
        controller = app.config.get('AUTH_CONTROLLER')
        if controller is not None:
            controller.stop()


@pytest.fixture
def signed_out_client(make_app, clock):
    return make_app(PasswordAuthService(clock)).test_client()


@pytest.fixture
def signed_in_app(make_app, clock):
    return make_app(PasswordAuthService(clock, make_session(clock, expires_in_minutes=600)))


def test_health_check(signed_out_client):
    response = signed_out_client.get('/api/health')

    assert response.status_code == 200
    assert response.get_json()['status'] == 'ok'


class TestSessionStatus:

    def test_signed_out(self, signed_out_client):
        data = signed_out_client.get('/api/session/status').get_json()

        assert data['authenticated'] is False
        assert data['status'] == 'Not Authenticated'
        assert data['monitor_state'] == 'unmonitored'

    def test_signed_in(self, signed_in_app):
        data = signed_in_app.test_client().get('/api/session/status').get_json()

        assert data['authenticated'] is True
        assert data['status'] == 'Active & Secure'
        assert data['time_remaining'] == '10h 0m'
        assert data['user_email'] == 'player@example.com'
        assert data['monitor_state'] == 'active'
        assert data['warning_shown'] is False

    def test_validate_signed_in(self, signed_in_app):
        response = signed_in_app.test_client().post('/api/session/validate')

        assert response.status_code == 200
        assert response.get_json()['valid'] is True

    def test_validate_signed_out(self, signed_out_client):
        response = signed_out_client.post('/api/session/validate')

        assert response.status_code == 401
        assert response.get_json()['error_code'] == 'AUTH_EXPIRED'


class TestActivity:

    def test_configured_event_counts(self, signed_in_app, clock):
        controller = signed_in_app.config['AUTH_CONTROLLER']
        clock.advance(minutes=30)

        response = signed_in_app.test_client().post('/api/session/activity', json={'event': 'click'})

        assert response.get_json()['counted_as_activity'] is True
        assert controller.monitor.last_activity == clock()

    def test_other_event_ignored(self, signed_in_app):
        response = signed_in_app.test_client().post('/api/session/activity', json={'event': 'focus'})

        assert response.status_code == 200
        assert response.get_json()['counted_as_activity'] is False

    def test_missing_event(self, signed_in_app):
        response = signed_in_app.test_client().post('/api/session/activity', json={})

        assert response.status_code == 400
        assert response.get_json()['missing_fields'] == ['event']


class TestSignInOut:

    def test_sign_in(self, signed_out_client):
        response = signed_out_client.post('/api/session/sign-in', json={
            'email': 'player@example.com',
            'password': PasswordAuthService.PASSWORD,
        })

        data = response.get_json()
        assert response.status_code == 200
        assert data['success'] is True
        assert data['authenticated'] is True
        assert data['monitor_state'] == 'active'

    def test_wrong_password(self, signed_out_client):
        response = signed_out_client.post('/api/session/sign-in', json={
            'email': 'player@example.com',
            'password': 'wrong',
        })

        assert response.status_code == 401
        assert response.get_json()['error'] == "Invalid email or password."

    def test_service_unreachable(self, signed_out_client):
        response = signed_out_client.post('/api/session/sign-in', json={
            'email': 'offline@example.com',
            'password': PasswordAuthService.PASSWORD,
        })

        assert response.status_code == 502
        assert response.get_json()['error_code'] == 'AUTH_SERVICE_ERROR'

    def test_missing_fields(self, signed_out_client):
        response = signed_out_client.post('/api/session/sign-in', json={'email': 'player@example.com'})

        assert response.status_code == 400
        assert response.get_json()['missing_fields'] == ['password']

    def test_backend_without_password_sign_in(self, make_app):
        client = make_app(FakeAuthService()).test_client()

        response = client.post('/api/session/sign-in', json={'email': 'a@b.c', 'password': 'x'})

        assert response.status_code == 501

    def test_sign_out(self, signed_in_app):
        controller = signed_in_app.config['AUTH_CONTROLLER']

        response = signed_in_app.test_client().post('/api/session/sign-out')

        assert response.get_json() == {'success': True, 'authenticated': False}
        assert not controller.is_authenticated
        assert controller.monitor.is_running is False


class TestNotifications:

    def test_expiry_reaches_stream_clients(self, signed_in_app):
        streamer = signed_in_app.config['NOTIFICATION_STREAMER']
        controller = signed_in_app.config['AUTH_CONTROLLER']
        message_queue = streamer.add_client('browser-tab')

        controller.monitor.clean_expired_session()

        entry = message_queue.get_nowait()
        assert entry['title'] == 'Session Expired'
        assert entry['variant'] == 'destructive'

    def test_stream_endpoint(self, signed_out_client):
        response = signed_out_client.get('/api/notifications/stream', buffered=False)

        assert response.status_code == 200
        assert response.mimetype == 'text/event-stream'
        response.close()


def test_unconfigured_app_reports_missing_credentials(monkeypatch):
    monkeypatch.setattr(Config, 'SUPABASE_URL', '')
    monkeypatch.setattr(Config, 'SUPABASE_ANON_KEY', '')
    monkeypatch.delenv('FLASK_DEBUG', raising=False)

    client = create_app().test_client()
    response = client.get('/api/session/status')

    assert response.status_code == 500
    assert response.get_json()['error_code'] == 'MISSING_CREDENTIALS'
