from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional, Protocol, Tuple, runtime_checkable

from warden.core.authc.store import UserIdentity, UserStore
from warden.core.config.models import LoginErrorMessages
from warden.core.errors import AccountLockedError, CredentialsExpiredError, RoleDisabledError
from warden.core.logger import get_logger

if TYPE_CHECKING:
    from warden.core.authc.activator import SessionActivator


@runtime_checkable
class CredentialPrompt(Protocol):
    def prompt_credentials(self, title: str, error_text: str) -> Optional[Tuple[str, str]]:
        """Block for (username, password); None means the user cancelled."""
        ...


UserPredicate = Callable[[UserIdentity], bool]


class LoginError(str, Enum):
    NONE = "none"
    INCORRECT_CREDENTIALS = "incorrect_credentials"
    LOCKED_ACCOUNT = "locked_account"
    EXPIRED_CREDENTIALS = "expired_credentials"
    DISABLED_ROLE = "disabled_role"
    EXCESSIVE_ATTEMPTS = "excessive_attempts"


def error_text(messages: LoginErrorMessages, error: LoginError) -> str:
    if error is LoginError.NONE:
        return ""
    return str(getattr(messages, error.value, "") or "")


class LoginFlow:
    """
    One interactive credential check, retried in a bounded loop.

    Each round prompts, looks the user up, checks the password and every
    predicate, and (with `attempt_new_session`) opens a session on the
    activator. Cancelling the prompt ends the flow with False. Failed rounds
    are retried with the matching error text while `retry_on_failure` is set
    and fewer than `max_attempts` prompts have been shown.
    """

    def __init__(
        self,
        activator: "SessionActivator",
        store: UserStore,
        prompt: CredentialPrompt,
        messages: Optional[LoginErrorMessages] = None,
        *,
        title: str = "",
        retry_on_failure: bool = True,
        max_attempts: int = 5,
        attempt_new_session: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.activator = activator
        self.store = store
        self.prompt = prompt
        self.messages = messages or LoginErrorMessages()
        self.title = title
        self.retry_on_failure = bool(retry_on_failure)
        self.max_attempts = max(1, int(max_attempts))
        self.attempt_new_session = bool(attempt_new_session)
        self.logger = logger or get_logger("login")
        self.predicates: List[UserPredicate] = []
        self.attempts = 0
        self.user: Optional[UserIdentity] = None

    def add_predicate(self, predicate: UserPredicate) -> "LoginFlow":
        self.predicates.append(predicate)
        return self

    def run(self) -> bool:
        error = LoginError.NONE
        while True:
            if self.attempts >= self.max_attempts:
                self.logger.warning("Login aborted after %d attempts: %s", self.attempts, error_text(self.messages, LoginError.EXCESSIVE_ATTEMPTS))
                return False
            self.attempts += 1
            creds = self.prompt.prompt_credentials(self.title, error_text(self.messages, error))
            if creds is None:
                return False
            result, error = self._attempt(creds)
            if result is not None:
                return result
            self.logger.info("Login attempt failed: %s", error.value)
            if not self.retry_on_failure:
                return False

    def _attempt(self, creds: Tuple[str, str]) -> Tuple[Optional[bool], LoginError]:
        """(True/False, NONE) ends the flow; (None, error) asks for another round."""
        username = str(creds[0] or "").strip().lower()
        password = creds[1]
        if not username or not self.store.user_exists(username):
            self.activator._fire_login_failure(self, None)
            return None, LoginError.INCORRECT_CREDENTIALS

        user = self.store.get_user(username)
        if user is None:
            self.activator._fire_login_failure(self, None)
            return None, LoginError.INCORRECT_CREDENTIALS

        password_ok = self.store.check_password_matches(user.username, password)
        if password_ok:
            self.activator._fire_login_success(self, user)
        predicates_ok = all([p(user) for p in self.predicates])
        if not password_ok or not predicates_ok:
            self.activator._fire_login_failure(self, user)
            return None, LoginError.INCORRECT_CREDENTIALS

        self.user = user
        if not self.attempt_new_session:
            return True, LoginError.NONE
        try:
            return self.activator.login_user(user.username), LoginError.NONE
        except RoleDisabledError:
            refused = LoginError.DISABLED_ROLE
        except CredentialsExpiredError:
            refused = LoginError.EXPIRED_CREDENTIALS
        except AccountLockedError:
            refused = LoginError.LOCKED_ACCOUNT
        self.user = None
        self.activator._fire_login_failure(self, user)
        return None, refused
