from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from warden.core.authc.activator import SessionActivator
from warden.core.authc.session import Session
from warden.core.authc.store import UserIdentity, UserStore
from warden.core.errors import IllegalStateError, InvalidArgumentError, require_name
from warden.core.events.manager import EventManager
from warden.core.events.models import SessionEvent
from warden.core.events.subscribers import LoggingEventHandler
from warden.core.events.target import EventHandler


class MultiSessionManager(SessionActivator):
    """
    Any number of concurrent sessions keyed by username.

    `max_sessions`: -1 unlimited, 0 blocks every login, N caps the map.
    Never touches the permission graph.
    """

    def __init__(
        self,
        store: UserStore,
        events: EventManager,
        *,
        max_sessions: int = -1,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(store, events, logger=logger)
        self._sessions: Dict[str, Session] = {}
        self._max_sessions = -1
        self.set_max_sessions(max_sessions)
        self._ev_opened = self._register("multiSessionOpened", SessionEvent.MULTI_SESSION_OPENED)
        self._ev_closed = self._register("multiSessionClosed", SessionEvent.MULTI_SESSION_CLOSED)

    # ---- capacity ----
    def set_max_sessions(self, max_sessions: int) -> None:
        value = int(max_sessions)
        if value < -1:
            raise InvalidArgumentError("Max sessions must be -1 (unlimited) or greater!", max_sessions=value)
        with self.lock:
            self._max_sessions = value

    def get_max_sessions(self) -> int:
        return self._max_sessions

    def get_sessions_count(self) -> int:
        return len(self._sessions)

    def get_sessions(self) -> Mapping[str, Session]:
        with self.lock:
            return MappingProxyType(dict(self._sessions))

    # ---- state ----
    def is_user_logged_in(self, username: Optional[str] = None) -> bool:
        if username is None:
            return bool(self._sessions)
        return self._canonical(username) in self._sessions

    def get_session(self, username: Optional[str] = None) -> Optional[Session]:
        username = require_name(username, "Username")
        return self._sessions.get(self._canonical(username))

    def is_new_session_allowed(self, username: str) -> bool:
        if username in self._sessions:
            return False
        cap = self._max_sessions
        if cap == 0:
            return False
        return cap < 0 or len(self._sessions) < cap

    # ---- open / close ----
    def _store_session(self, user: UserIdentity, session: Session) -> None:
        self._sessions[session.username] = session
        self.events.dispatch(self._ev_opened, self, user=user, session=session)

    def logout_user(self, username: str) -> bool:
        username = require_name(username, "Username")
        with self.lock:
            username = self._canonical(username)
            session = self._sessions.get(username)
            if session is None:
                return False
            user = self._lookup_user(username)
            self.events.dispatch(self._ev_closed, self, user=user, session=session)
            del self._sessions[username]
        self.logger.info("Session closed: user=%s (%d open)", username, len(self._sessions))
        return True

    # ---- listeners ----
    def set_on_multi_session_opened(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(SessionEvent.MULTI_SESSION_OPENED, handler)

    def set_on_multi_session_closed(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(SessionEvent.MULTI_SESSION_CLOSED, handler)

    def enable_debug_logging(self) -> None:
        def render(verb: str, state: str):
            return lambda ev: f"EVENT: {ev.session.username if ev.session else None} {verb} Successfully! (Session {state})"

        log = self.logger
        self.set_on_multi_session_opened(LoggingEventHandler(logger=log, level=logging.DEBUG, render=render("Logged In", "Opened")))
        self.set_on_multi_session_closed(LoggingEventHandler(logger=log, level=logging.DEBUG, render=render("Logged Out", "Closed")))
        self.set_on_login_state(
            LoggingEventHandler(logger=log, level=logging.DEBUG),
            LoggingEventHandler(logger=log, level=logging.DEBUG, render=lambda ev: "EVENT: Invalid Username Or Password!"),
        )

    def disable_debug_logging(self) -> None:
        self.set_on_multi_session_opened(None)
        self.set_on_multi_session_closed(None)
        self.set_on_login_state(None, None)

    def __copy__(self) -> "MultiSessionManager":
        raise IllegalStateError("Cloning Session Manager Is Not Allowed!")

    def __deepcopy__(self, memo: Dict[int, Any]) -> "MultiSessionManager":
        raise IllegalStateError("Cloning Session Manager Is Not Allowed!")
