from __future__ import annotations

from warden.core.config.models import LoginErrorMessages
from warden.core.events.models import SessionEvent

from .helpers.fakes import EventRecorder


def _watch(sm):
    rec = EventRecorder()
    for t in (
        SessionEvent.SESSION_ADMIN_OVERRIDE_STARTED,
        SessionEvent.SESSION_ADMIN_OVERRIDE_SUCCESS,
        SessionEvent.SESSION_ADMIN_OVERRIDE_FAILURE,
        SessionEvent.SESSION_USER_VERIFY_STARTED,
        SessionEvent.SESSION_USER_VERIFY_SUCCESS,
        SessionEvent.SESSION_USER_VERIFY_FAILURE,
    ):
        sm.add_event_handler(t, rec)
    return rec


def test_override_is_immediate_when_admin_logged_in(session_manager, prompt):
    session_manager.login_user("root")
    rec = _watch(session_manager)

    assert session_manager.get_admin_override() is True

    assert prompt.calls == []
    assert rec.types == ["SESSION_ADMIN_OVERRIDE_STARTED", "SESSION_ADMIN_OVERRIDE_SUCCESS"]
    assert rec.last.user.username == "root"


def test_override_with_admin_credentials_keeps_current_session(session_manager, prompt, permissions):
    session_manager.login_user("alice")
    before = session_manager.get_session()
    rec = _watch(session_manager)
    prompt.push(("root", "pw"))

    assert session_manager.get_admin_override(False) is True

    assert session_manager.get_session() is before
    assert session_manager.get_logged_in_username() == "alice"
    assert not permissions.is_admin_permission_enabled()
    assert rec.types == ["SESSION_ADMIN_OVERRIDE_STARTED", "SESSION_ADMIN_OVERRIDE_SUCCESS"]
    assert rec.last.user.username == "root"
    assert prompt.calls == [("Admin Override Required", "")]


def test_override_refuses_non_admin_credentials(session_manager, prompt):
    session_manager.login_user("alice")
    rec = _watch(session_manager)
    prompt.push(("bob", "pw"))

    assert session_manager.get_admin_override(False) is False

    assert rec.types == ["SESSION_ADMIN_OVERRIDE_STARTED", "SESSION_ADMIN_OVERRIDE_FAILURE"]
    assert len(prompt.calls) == 1


def test_override_retries_until_admin_answers(session_manager, prompt):
    session_manager.login_user("alice")
    prompt.push(("bob", "pw"), ("root", "pw"))

    assert session_manager.get_admin_override(True) is True

    assert [c[1] for c in prompt.calls] == ["", LoginErrorMessages.defaults().incorrect_credentials]


def test_override_without_any_session(session_manager, prompt):
    prompt.push(("root", "pw"))
    assert session_manager.get_admin_override(False) is True
    assert not session_manager.is_user_logged_in()


def test_require_admin_short_circuits_for_admin(session_manager, prompt):
    session_manager.login_user("root")
    rec = _watch(session_manager)
    assert session_manager.require_admin() is True
    assert rec.seen == []
    assert prompt.calls == []


def test_require_admin_prompts_otherwise(session_manager, prompt):
    session_manager.login_user("bob")
    prompt.push(("root", "pw"))
    assert session_manager.require_admin() is True
    assert session_manager.get_logged_in_username() == "bob"


def test_require_and_verify_admin_reverifies_logged_in_admin(session_manager, prompt):
    session_manager.login_user("root")
    rec = _watch(session_manager)
    prompt.push(("root", "pw"))

    assert session_manager.require_and_verify_admin() is True

    assert rec.types == ["SESSION_USER_VERIFY_STARTED", "SESSION_USER_VERIFY_SUCCESS"]
    assert rec.last.user.username == "root"
    assert prompt.calls[0][0] == "User Verification Required"


def test_require_and_verify_admin_falls_back_to_override(session_manager, prompt):
    session_manager.login_user("alice")
    rec = _watch(session_manager)
    prompt.push(("root", "pw"))

    assert session_manager.require_and_verify_admin() is True
    assert rec.types[0] == "SESSION_ADMIN_OVERRIDE_STARTED"


def test_verification_rejects_other_user_regardless_of_password(session_manager, prompt, store):
    store.add("root2", role="admin")
    session_manager.login_user("root")
    rec = _watch(session_manager)
    prompt.push(("root2", "pw"))

    assert session_manager.require_and_verify_admin() is False

    # retried once, then the prompt was cancelled
    assert len(prompt.calls) == 2
    assert rec.types == ["SESSION_USER_VERIFY_STARTED", "SESSION_USER_VERIFY_FAILURE"]
    assert session_manager.get_logged_in_username() == "root"


def test_verification_with_wrong_password(session_manager, prompt):
    session_manager.login_user("alice")
    prompt.push(("alice", "nope"))
    assert session_manager.get_user_verification(False) is False


def test_verification_without_session_fails_without_prompting(session_manager, prompt):
    rec = _watch(session_manager)
    assert session_manager.get_user_verification(True) is False
    assert prompt.calls == []
    assert rec.types == ["SESSION_USER_VERIFY_STARTED", "SESSION_USER_VERIFY_FAILURE"]


def test_override_titles_use_program_name(session_manager, prompt):
    session_manager.config = session_manager.config.model_copy(update={"program_name": "Acme"})
    prompt.push(("root", "pw"))
    session_manager.get_admin_override(False)
    assert prompt.calls[0][0] == "Acme - Admin Override Required"
