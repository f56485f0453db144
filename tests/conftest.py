from __future__ import annotations

import pytest

from warden.core.authc.manager import SessionManager
from warden.core.authc.multi import MultiSessionManager
from warden.core.authc.roles import UserRoleManager
from warden.core.authz.manager import PermissionManager
from warden.core.config.models import LoginErrorMessages, SessionConfig
from warden.core.events.manager import EventManager

from .helpers.fakes import FakeUserStore, ScriptedPrompt


@pytest.fixture
def events():
    return EventManager()


@pytest.fixture
def permissions(events):
    return PermissionManager(events)


@pytest.fixture
def roles(permissions):
    return UserRoleManager(permissions)


@pytest.fixture
def store(roles):
    """
    alice: basic, bob: editor, root: admin. Every password is "pw".
    """
    s = FakeUserStore(roles)
    s.add("alice", role="basic")
    s.add("bob", role="editor")
    s.add("root", role="admin")
    return s


@pytest.fixture
def prompt():
    return ScriptedPrompt()


@pytest.fixture
def session_manager(store, events, permissions, prompt):
    return SessionManager(
        store,
        events,
        permissions,
        prompt,
        config=SessionConfig(max_login_attempts=5),
        messages=LoginErrorMessages.defaults(),
    )


@pytest.fixture
def multi_manager(store, events):
    return MultiSessionManager(store, events)
