from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from warden.core.authc.activator import SessionActivator
from warden.core.authc.login import CredentialPrompt, LoginFlow
from warden.core.authc.roles import SystemUserRoles, UserRole
from warden.core.authc.session import Session
from warden.core.authc.store import UserIdentity, UserStore
from warden.core.authz.manager import PermissionManager
from warden.core.config.models import LoginErrorMessages, SessionConfig
from warden.core.errors import IllegalStateError, InvalidArgumentError
from warden.core.events.manager import EventManager
from warden.core.events.models import Event, SessionEvent
from warden.core.events.subscribers import LoggingEventHandler
from warden.core.events.target import EventHandler


class SessionManager(SessionActivator):
    """
    Single active session, wired to the permission graph.

    Opening a session applies the user's role to the `PermissionManager`;
    closing it disables every permission. Admin override and user
    verification re-authenticate through the credential prompt without
    touching the current session.
    """

    def __init__(
        self,
        store: UserStore,
        events: EventManager,
        permission_manager: PermissionManager,
        prompt: Optional[CredentialPrompt] = None,
        *,
        config: Optional[SessionConfig] = None,
        messages: Optional[LoginErrorMessages] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(store, events, logger=logger)
        if permission_manager is None:
            raise InvalidArgumentError("Permission Manager Cannot Be Null!")
        self.permission_manager = permission_manager
        self.prompt = prompt
        self.config = config or SessionConfig()
        self.login_error_messages = messages or LoginErrorMessages()
        self._current_session: Optional[Session] = None

        self._ev_opened = self._register("sessionOpened", SessionEvent.SESSION_OPENED)
        self._ev_closed = self._register("sessionClosed", SessionEvent.SESSION_CLOSED)
        self._ev_override_started = self._register("adminOverrideStarted", SessionEvent.SESSION_ADMIN_OVERRIDE_STARTED)
        self._ev_override_success = self._register("adminOverrideSuccess", SessionEvent.SESSION_ADMIN_OVERRIDE_SUCCESS)
        self._ev_override_failure = self._register("adminOverrideFailure", SessionEvent.SESSION_ADMIN_OVERRIDE_FAILURE)
        self._ev_verify_started = self._register("userVerifyStarted", SessionEvent.SESSION_USER_VERIFY_STARTED)
        self._ev_verify_success = self._register("userVerifySuccess", SessionEvent.SESSION_USER_VERIFY_SUCCESS)
        self._ev_verify_failure = self._register("userVerifyFailure", SessionEvent.SESSION_USER_VERIFY_FAILURE)

    @property
    def program_name(self) -> str:
        return self.config.program_name

    def enable_default_error_messages(self) -> None:
        self.login_error_messages = LoginErrorMessages.defaults()

    # ---- state ----
    def is_user_logged_in(self, username: Optional[str] = None) -> bool:
        current = self._current_session
        if username is None:
            return current is not None
        return current is not None and current.username == self._canonical(username)

    def get_session(self, username: Optional[str] = None) -> Optional[Session]:
        current = self._current_session
        if username is None or current is None:
            return current
        return current if current.username == self._canonical(username) else None

    def is_new_session_allowed(self, username: str) -> bool:
        # Only one session at a time, whoever holds it.
        return self._current_session is None

    def get_logged_in_username(self) -> Optional[str]:
        current = self._current_session
        return current.username if current is not None else None

    def get_logged_in_user_role(self) -> Optional[UserRole]:
        current = self._current_session
        return current.user_role if current is not None else None

    def is_admin_logged_in(self) -> bool:
        role = self.get_logged_in_user_role()
        return role is not None and role.name == SystemUserRoles.ADMIN.value

    # ---- open / close ----
    def _store_session(self, user: UserIdentity, session: Session) -> None:
        self.permission_manager.load_permissions(session.user_role)
        self._current_session = session
        self.events.dispatch(self._ev_opened, self, user=user, session=session)

    def logout_user(self) -> bool:
        with self.lock:
            session = self._current_session
            if session is None:
                return False
            user = self._lookup_user(session.username)
            self.permission_manager.load_permissions(False)
            self.events.dispatch(self._ev_closed, self, user=user, session=session)
            self._current_session = None
        self.logger.info("Session closed: user=%s", session.username)
        return True

    # ---- interactive flows ----
    def _title(self, suffix: str) -> str:
        name = (self.program_name or "").strip()
        return f"{name} - {suffix}" if name else suffix

    def _flow(self, title: str, retry: Optional[bool], *, attempt_new_session: bool = False) -> LoginFlow:
        if self.prompt is None:
            raise IllegalStateError("No credential prompt configured!")
        return LoginFlow(
            self,
            self.store,
            self.prompt,
            self.login_error_messages,
            title=self._title(title),
            retry_on_failure=self.config.retry_login_on_failure if retry is None else retry,
            max_attempts=self.config.max_login_attempts,
            attempt_new_session=attempt_new_session,
            logger=self.logger,
        )

    def show_login_window(self, retry: Optional[bool] = None) -> bool:
        """Prompt for credentials and open a session for them."""
        return self._flow("Login Required", retry, attempt_new_session=True).run()

    def _is_admin_user(self, user: UserIdentity) -> bool:
        return self.store.get_user_role(user.username).name == SystemUserRoles.ADMIN.value

    def get_admin_override(self, retry: Optional[bool] = None) -> bool:
        """
        Prove admin rights without replacing the current session.

        Succeeds at once when an admin is already logged in; otherwise asks
        for the credentials of a user whose role is admin.
        """
        self.events.dispatch(self._ev_override_started, self)
        if self.is_admin_logged_in():
            user = self._lookup_user(self.get_logged_in_username() or "")
            self.events.dispatch(self._ev_override_success, self, user=user)
            return True
        flow = self._flow("Admin Override Required", retry).add_predicate(self._is_admin_user)
        if flow.run():
            self.events.dispatch(self._ev_override_success, self, user=flow.user)
            self.logger.info("Admin override granted: user=%s", flow.user.username if flow.user else None)
            return True
        self.events.dispatch(self._ev_override_failure, self)
        self.logger.info("Admin override refused")
        return False

    def get_user_verification(self, retry: Optional[bool] = None) -> bool:
        """Re-check the password of the user who is currently logged in."""
        self.events.dispatch(self._ev_verify_started, self)
        username = self.get_logged_in_username()
        current_user = self._lookup_user(username) if username else None
        if username is None:
            self.events.dispatch(self._ev_verify_failure, self)
            return False
        flow = self._flow("User Verification Required", retry).add_predicate(lambda u: u.username == username.lower())
        ok = flow.run()
        ev = self._ev_verify_success if ok else self._ev_verify_failure
        self.events.dispatch(ev, self, user=current_user)
        return ok

    def require_admin(self) -> bool:
        return self.is_admin_logged_in() or self.get_admin_override(True)

    def require_and_verify_admin(self) -> bool:
        if self.is_admin_logged_in():
            return self.get_user_verification(True)
        return self.get_admin_override(True)

    # ---- listeners ----
    def set_on_admin_override_started(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(SessionEvent.SESSION_ADMIN_OVERRIDE_STARTED, handler)

    def set_on_admin_override_success(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(SessionEvent.SESSION_ADMIN_OVERRIDE_SUCCESS, handler)

    def set_on_admin_override_failure(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(SessionEvent.SESSION_ADMIN_OVERRIDE_FAILURE, handler)

    def set_on_user_verify_started(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(SessionEvent.SESSION_USER_VERIFY_STARTED, handler)

    def set_on_user_verify_success(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(SessionEvent.SESSION_USER_VERIFY_SUCCESS, handler)

    def set_on_user_verify_failure(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(SessionEvent.SESSION_USER_VERIFY_FAILURE, handler)

    def enable_debug_logging(self) -> None:
        log = self.logger

        def line(text: str) -> LoggingEventHandler:
            return LoggingEventHandler(logger=log, level=logging.DEBUG, render=lambda ev: text)

        def with_user(fmt: str) -> LoggingEventHandler:
            return LoggingEventHandler(logger=log, level=logging.DEBUG, render=lambda ev: fmt.format(_event_username(ev)))

        self.set_on_login_state(
            with_user("EVENT: Access Granted {}! (Opening Session)"),
            line("EVENT: Invalid Username Or Password!"),
        )
        self.set_on_session_state(
            with_user("EVENT: {} Logged In Successfully! (Session Opened)"),
            with_user("EVENT: {} Logged Out Successfully! (Session Closed)"),
        )
        self.set_on_admin_override_started(line("Requesting Admin Override..."))
        self.set_on_admin_override_success(line("Admin Permissions Granted! Continuing..."))
        self.set_on_admin_override_failure(line("Override Request Failed!"))
        self.set_on_user_verify_started(line("Requesting User Verification..."))
        self.set_on_user_verify_success(line("Account Verified! Continuing..."))
        self.set_on_user_verify_failure(line("Verification Request Failed!"))

    def disable_debug_logging(self) -> None:
        self.set_on_login_state(None, None)
        self.set_on_session_state(None, None)
        self.set_on_admin_override_started(None)
        self.set_on_admin_override_success(None)
        self.set_on_admin_override_failure(None)
        self.set_on_user_verify_started(None)
        self.set_on_user_verify_success(None)
        self.set_on_user_verify_failure(None)

    def __copy__(self) -> "SessionManager":
        raise IllegalStateError("Cloning Session Manager Is Not Allowed!")

    def __deepcopy__(self, memo: Dict[int, Any]) -> "SessionManager":
        raise IllegalStateError("Cloning Session Manager Is Not Allowed!")


def _event_username(ev: Event) -> Optional[str]:
    session = getattr(ev, "session", None)
    if session is not None:
        return session.username
    user = getattr(ev, "user", None)
    return user.username if user is not None else None
