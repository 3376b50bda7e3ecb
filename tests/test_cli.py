"""Tests for the command line interface."""

import time

import pytest

from game_backlog_tracker import main as cli
from game_backlog_tracker.config import Config
from game_backlog_tracker.errors import AuthServiceError

from session_fakes import FakeAuthService, FakeClock, auth_error, make_session


class CliAuthService(FakeAuthService):
    """Fake client exposing the extras the CLI uses."""

    def __init__(self, session=None):
        super().__init__(session)
        self.storage = None
        self.cookies = None
        self.credentials = []

    def sign_in_with_password(self, email, password):
        self.credentials.append((email, password))
        if password != 'hunter2':
            raise AuthServiceError.from_exception(Exception("400 invalid_grant"), 'sign_in')
        self.sign_in(make_session(FakeClock(time.time()), expires_in_minutes=600, email=email))
        return self.session


@pytest.fixture
def use_client(monkeypatch):
    def install(client):
        monkeypatch.setattr(cli, 'build_client', lambda: client)
        return client
    return install


def test_status_signed_in(use_client, capsys):
    use_client(CliAuthService(make_session(FakeClock(time.time()), expires_in_minutes=600)))

    assert cli.main(['status']) == 0

    out = capsys.readouterr().out
    assert "Status: Active & Secure" in out
    assert "User: player@example.com" in out


def test_status_signed_out(use_client, capsys):
    use_client(CliAuthService())

    assert cli.main(['status']) == 1
    assert "Status: Not Authenticated" in capsys.readouterr().out


def test_login(use_client, monkeypatch, capsys):
    client = use_client(CliAuthService())
    monkeypatch.setattr(cli.getpass, 'getpass', lambda prompt: 'hunter2')

    assert cli.main(['login', '--email', 'player@example.com']) == 0

    assert client.credentials == [('player@example.com', 'hunter2')]
    assert "Signed in" in capsys.readouterr().out


def test_login_rejected(use_client, monkeypatch, capsys):
    use_client(CliAuthService())
    monkeypatch.setattr(cli.getpass, 'getpass', lambda prompt: 'wrong')

    assert cli.main(['login', '--email', 'player@example.com']) == 1
    assert "Sign in again" in capsys.readouterr().out


def test_logout(use_client):
    client = use_client(CliAuthService(make_session(FakeClock(time.time()))))

    assert cli.main(['logout']) == 0
    assert client.session is None


def test_logout_server_failure(use_client, capsys):
    client = use_client(CliAuthService())
    client.sign_out_error = auth_error()

    assert cli.main(['logout']) == 1
    assert "local session removed" in capsys.readouterr().out


def test_watch_requires_session(use_client, capsys):
    client = use_client(CliAuthService())

    assert cli.main(['watch']) == 1
    assert "Not signed in" in capsys.readouterr().out
    assert client.subscriber_count == 0


def test_build_client_requires_configuration(monkeypatch):
    monkeypatch.setattr(Config, 'SUPABASE_URL', '')

    with pytest.raises(SystemExit):
        cli.build_client()
