from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from warden.core.authc.session import Session
from warden.core.authc.store import UserIdentity, UserStore
from warden.core.errors import (
    AccountLockedError,
    CredentialsExpiredError,
    InvalidArgumentError,
    RoleDisabledError,
    require_name,
)
from warden.core.events.manager import EventManager
from warden.core.events.models import SessionEvent
from warden.core.events.target import EventHandler, EventTarget
from warden.core.events.types import EventType
from warden.core.logger import get_logger


class SessionActivator(EventTarget):
    """
    Shared login/logout machinery for the single- and multi-session engines.

    Subclasses decide where sessions live (`_store_session`) and which
    events announce them. Session state is guarded by `self.lock`; the
    logged-in queries read without it. Sessions are keyed by the username as
    the store spells it, so lookups go through `_canonical`.

    Lock order is session lock, then `PermissionManager.lock`. Permission
    handlers must not call back into the session engine from another thread
    while a login or logout is in progress.
    """

    def __init__(self, store: UserStore, events: EventManager, *, logger: Optional[logging.Logger] = None) -> None:
        super().__init__()
        if store is None:
            raise InvalidArgumentError("User Store Cannot Be Null!")
        if events is None:
            raise InvalidArgumentError("Event Manager Cannot Be Null!")
        self.store = store
        self.events = events
        self.logger = logger or get_logger("session")
        self.lock = threading.RLock()
        self._ev_login_success = self._register("sessionLoginSuccess", SessionEvent.SESSION_LOGIN_SUCCESS)
        self._ev_login_failure = self._register("sessionLoginFailure", SessionEvent.SESSION_LOGIN_FAILURE)

    def _register(self, name: str, event_type: EventType) -> SessionEvent:
        return self.events.register_new_event(name, SessionEvent, event_type, target=self)

    # ---- subclass hooks ----
    def is_user_logged_in(self, username: Optional[str] = None) -> bool:
        raise NotImplementedError

    def get_session(self, username: Optional[str] = None) -> Optional[Session]:
        raise NotImplementedError

    def is_new_session_allowed(self, username: str) -> bool:
        raise NotImplementedError

    def _store_session(self, user: UserIdentity, session: Session) -> None:
        raise NotImplementedError

    # ---- login ----
    def login_user(self, username: str) -> bool:
        """
        Open a session for `username` without checking a password.

        Returns False when a new session is not allowed or the user is
        unknown. A locked account, an expired password or a disabled role
        raise.
        """
        username = require_name(username, "Username")
        with self.lock:
            user = self._lookup_user(username)
            if user is None:
                return False
            username = user.username
            if not self.is_new_session_allowed(username):
                return False
            if user.locked:
                raise AccountLockedError(f"User {username} is locked!", username=username)
            if user.password_expired:
                raise CredentialsExpiredError(f"User {username}'s password has expired!", username=username)
            self._fire_login_success(self, user)
            role = self.store.get_user_role(username)
            if not role.enabled:
                raise RoleDisabledError(f"User Role {role} Is Disabled!", role=role.name, username=username)
            session = Session(username, role)
            self._store_session(user, session)
        self.logger.info("Session opened: user=%s role=%s", username, role.name)
        return True

    def _lookup_user(self, username: str) -> Optional[UserIdentity]:
        # The user may have been deleted from the store while logged in.
        if self.store.user_exists(username):
            return self.store.get_user(username)
        return None

    def _canonical(self, username: str) -> str:
        user = self._lookup_user(username)
        return user.username if user is not None else username

    def _fire_login_success(self, source: Any, user: Optional[UserIdentity]) -> None:
        self.events.dispatch(self._ev_login_success, source, user=user)

    def _fire_login_failure(self, source: Any, user: Optional[UserIdentity]) -> None:
        self.events.dispatch(self._ev_login_failure, source, user=user)

    # ---- listeners ----
    def set_on_session_opened(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(SessionEvent.SESSION_OPENED, handler)

    def set_on_session_closed(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(SessionEvent.SESSION_CLOSED, handler)

    def set_on_session_state(self, opened: Optional[EventHandler], closed: Optional[EventHandler]) -> None:
        self.set_on_session_opened(opened)
        self.set_on_session_closed(closed)

    def set_on_login_success(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(SessionEvent.SESSION_LOGIN_SUCCESS, handler)

    def set_on_login_failure(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(SessionEvent.SESSION_LOGIN_FAILURE, handler)

    def set_on_login_state(self, success: Optional[EventHandler], failure: Optional[EventHandler]) -> None:
        self.set_on_login_success(success)
        self.set_on_login_failure(failure)
