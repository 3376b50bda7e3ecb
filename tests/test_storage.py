"""Tests for client storage and credential purging."""

import json

import pytest
from requests.cookies import RequestsCookieJar

from game_backlog_tracker.errors import error_handler
from game_backlog_tracker.session.storage import (
    FileStorage,
    MemoryStorage,
    clear_client_storage,
    is_auth_cookie,
    is_auth_storage_key,
)


class FlakyStorage(MemoryStorage):
    """Storage whose removal of one key always fails."""

    def __init__(self, initial, broken_key):
        super().__init__(initial)
        self.broken_key = broken_key

    def remove_item(self, key):
        if key == self.broken_key:
            raise PermissionError(f"cannot remove {key}")
        super().remove_item(key)


@pytest.fixture(autouse=True)
def reset_error_handler():
    error_handler.clear_errors()
    yield
    error_handler.clear_errors()


class TestAuthKeyMatching:

    @pytest.mark.parametrize("key", [
        'sb-abcd-auth-token',
        'supabase.auth.token',
        'SESSION_ID',
        'refresh-Token',
        'my-auth-state',
    ])
    def test_auth_storage_keys(self, key):
        assert is_auth_storage_key(key)

    @pytest.mark.parametrize("key", ['theme', 'backlog-sort', 'last-tab', ''])
    def test_non_auth_storage_keys(self, key):
        assert not is_auth_storage_key(key)

    @pytest.mark.parametrize("name", ['sb-access-token', 'SessionId', 'auth_state', 'csrf_token'])
    def test_auth_cookies(self, name):
        assert is_auth_cookie(name)

    def test_supabase_marker_is_storage_only(self):
        assert is_auth_storage_key('supabase-settings')
        assert not is_auth_cookie('supabase-settings')


class TestMemoryStorage:

    def test_basic_operations(self):
        storage = MemoryStorage()
        storage.set_item('a', '1')

        assert storage.get_item('a') == '1'
        assert 'a' in storage
        assert len(storage) == 1

        storage.remove_item('a')
        storage.remove_item('missing')
        assert storage.get_item('a') is None
        assert len(storage) == 0


class TestFileStorage:

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "data" / "local_storage.json"
        storage = FileStorage(path)
        storage.set_item('sb-ref-auth-token', '{"a": 1}')
        storage.set_item('theme', 'dark')

        reloaded = FileStorage(path)

        assert reloaded.get_item('theme') == 'dark'
        assert json.loads(path.read_text(encoding='utf-8'))['sb-ref-auth-token'] == '{"a": 1}'

    def test_removal_is_persisted(self, tmp_path):
        path = tmp_path / "local_storage.json"
        storage = FileStorage(path)
        storage.set_item('theme', 'dark')
        storage.remove_item('theme')

        assert FileStorage(path).keys() == []

    def test_unreadable_file_starts_empty(self, tmp_path):
        path = tmp_path / "local_storage.json"
        path.write_text("{not json", encoding='utf-8')

        assert len(FileStorage(path)) == 0


class TestClearClientStorage:

    def test_removes_only_auth_entries(self, local_storage, session_storage):
        report = clear_client_storage(local_storage, session_storage)

        assert report.local_keys == ['sb-abcd-auth-token']
        assert report.session_keys == ['session-draft']
        assert report.success
        assert local_storage.keys() == ['theme', 'backlog-sort']
        assert session_storage.keys() == ['last-tab']

    def test_removes_auth_cookies_for_every_domain(self):
        jar = RequestsCookieJar()
        jar.set('sb-access-token', 'a', domain='abcd.supabase.co', path='/')
        jar.set('sb-access-token', 'b', domain='.supabase.co', path='/auth')
        jar.set('preferences', 'compact', domain='abcd.supabase.co', path='/')

        report = clear_client_storage(cookies=jar)

        assert report.cookies == ['sb-access-token']
        assert [c.name for c in jar] == ['preferences']

    def test_failed_key_does_not_stop_purge(self):
        storage = FlakyStorage(
            {'sb-a-auth-token': '1', 'auth-state': '2', 'theme': 'dark'},
            broken_key='sb-a-auth-token'
        )

        report = clear_client_storage(local=storage)

        assert report.local_keys == ['auth-state']
        assert report.failures == [('session storage', 'sb-a-auth-token')]
        assert not report.success
        assert storage.keys() == ['sb-a-auth-token', 'theme']
        assert error_handler.get_error_summary()['warning_count'] == 1

    def test_nothing_to_purge(self):
        report = clear_client_storage()

        assert report.removed_count == 0
        assert report.success
