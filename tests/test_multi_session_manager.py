from __future__ import annotations

import pytest

from warden.core.authc.multi import MultiSessionManager
from warden.core.authc.store import InMemoryUserStore
from warden.core.errors import InvalidArgumentError, RoleDisabledError

from .helpers.fakes import EventRecorder


def test_independent_sessions_per_user(multi_manager):
    assert multi_manager.login_user("alice") is True
    assert multi_manager.login_user("bob") is True

    assert multi_manager.get_sessions_count() == 2
    assert multi_manager.is_user_logged_in("alice")
    assert multi_manager.is_user_logged_in()
    assert multi_manager.get_session("bob").user_role.name == "editor"
    assert multi_manager.login_user("alice") is False


def test_cap_blocks_extra_logins(store, events):
    mm = MultiSessionManager(store, events, max_sessions=2)
    assert mm.login_user("alice")
    assert mm.login_user("bob")
    assert mm.login_user("root") is False
    assert mm.get_sessions_count() == 2
    assert not mm.is_user_logged_in("root")


def test_zero_cap_blocks_everything(multi_manager):
    multi_manager.set_max_sessions(0)
    assert multi_manager.login_user("alice") is False
    assert multi_manager.get_sessions_count() == 0


def test_lowering_cap_below_open_sessions(multi_manager):
    multi_manager.login_user("alice")
    multi_manager.login_user("bob")
    multi_manager.set_max_sessions(1)
    assert multi_manager.get_max_sessions() == 1
    assert multi_manager.login_user("root") is False
    multi_manager.set_max_sessions(-1)
    assert multi_manager.login_user("root") is True


def test_invalid_cap_is_rejected(multi_manager):
    with pytest.raises(InvalidArgumentError):
        multi_manager.set_max_sessions(-2)


def test_never_touches_permissions(store, events, permissions):
    mm = MultiSessionManager(store, events)
    mm.login_user("root")
    assert not permissions.is_admin_permission_enabled()
    mm.logout_user("root")
    assert not any(permissions.is_permission_enabled(n) for n in permissions.get_permission_names())


def test_open_and_close_events(multi_manager):
    opened = EventRecorder()
    closed = EventRecorder()
    multi_manager.set_on_multi_session_opened(opened)
    multi_manager.set_on_multi_session_closed(closed)

    multi_manager.login_user("alice")
    assert opened.last.user.username == "alice"
    assert opened.last.session.username == "alice"

    assert multi_manager.logout_user("alice") is True
    assert closed.last.session.username == "alice"
    assert not multi_manager.is_user_logged_in("alice")


def test_logout_unknown_user_is_quiet(multi_manager):
    closed = EventRecorder()
    multi_manager.set_on_multi_session_closed(closed)
    multi_manager.login_user("alice")

    assert multi_manager.logout_user("bob") is False
    assert closed.seen == []
    assert multi_manager.get_sessions_count() == 1


@pytest.mark.parametrize("bad", [None, ""])
def test_username_is_required(multi_manager, bad):
    with pytest.raises(InvalidArgumentError):
        multi_manager.logout_user(bad)
    with pytest.raises(InvalidArgumentError):
        multi_manager.login_user(bad)
    with pytest.raises(InvalidArgumentError):
        multi_manager.get_session(bad)


def test_sessions_view_is_read_only(multi_manager):
    multi_manager.login_user("alice")
    view = multi_manager.get_sessions()
    with pytest.raises(TypeError):
        view["mallory"] = view["alice"]  # type: ignore[index]
    assert set(view) == {"alice"}


def test_disabled_role_raises_in_multi_mode(multi_manager, roles, store):
    roles.create_user_role("guest").disable()
    store.add("gina", role="guest")
    with pytest.raises(RoleDisabledError):
        multi_manager.login_user("gina")
    assert multi_manager.get_sessions_count() == 0


def test_well_known_event_names(multi_manager, events):
    assert events.has_event("multiSessionOpened")
    assert events.has_event("multiSessionClosed")
    assert events.has_event("sessionLoginSuccess")


def test_logout_of_deleted_user(multi_manager, store):
    closed = EventRecorder()
    multi_manager.set_on_multi_session_closed(closed)
    multi_manager.login_user("bob")
    store.delete("bob")
    assert multi_manager.logout_user("bob") is True
    assert closed.last.user is None


def test_username_case_maps_to_one_session(roles, events):
    mem = InMemoryUserStore(roles, kdf_n=2**4)
    mem.add_user("alice", "pw")
    mm = MultiSessionManager(mem, events, max_sessions=2)

    assert mm.login_user("alice") is True
    assert mm.login_user("ALICE") is False
    assert list(mm.get_sessions()) == ["alice"]
    assert mm.is_user_logged_in("Alice")
    assert mm.get_session("ALICE").username == "alice"

    assert mm.logout_user("ALICE") is True
    assert mm.get_sessions_count() == 0
