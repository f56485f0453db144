from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from warden.core.authc.roles import UserRole, UserRoleManager
from warden.core.authc.store import UserIdentity
from warden.core.events.types import EventType


class FakeUserStore:
    """
    Plain-text password store implementing the UserStore protocol.
    """

    def __init__(self, roles: UserRoleManager):
        self.roles = roles
        self.users: Dict[str, UserIdentity] = {}
        self.passwords: Dict[str, str] = {}
        self.calls: List[Tuple[str, str]] = []

    def add(self, username: str, password: str = "pw", role: str = "basic", **kw: Any) -> UserIdentity:
        u = UserIdentity(username=username, role_name=role, **kw)
        self.users[username] = u
        self.passwords[username] = password
        return u

    def set_role(self, username: str, role: str) -> None:
        self.users[username] = self.users[username].model_copy(update={"role_name": role})

    def set_flags(self, username: str, **flags: bool) -> None:
        self.users[username] = self.users[username].model_copy(update=flags)

    def delete(self, username: str) -> None:
        self.users.pop(username, None)
        self.passwords.pop(username, None)

    def user_exists(self, username: str) -> bool:
        self.calls.append(("user_exists", username))
        return username in self.users

    def get_user(self, username: str) -> Optional[UserIdentity]:
        self.calls.append(("get_user", username))
        return self.users.get(username)

    def get_user_role(self, username: str) -> UserRole:
        self.calls.append(("get_user_role", username))
        role = self.roles.get_user_role(self.users[username].role_name)
        assert role is not None
        return role

    def check_password_matches(self, username: str, password: str) -> bool:
        self.calls.append(("check_password_matches", username))
        return self.passwords.get(username) == password


class ScriptedPrompt:
    """
    Answers credential prompts from a fixed script; None (or running out) cancels.
    """

    def __init__(self, *answers: Optional[Tuple[str, str]], repeat_last: bool = False):
        self.answers: List[Optional[Tuple[str, str]]] = list(answers)
        self.repeat_last = repeat_last
        self.calls: List[Tuple[str, str]] = []

    def push(self, *answers: Optional[Tuple[str, str]]) -> None:
        self.answers.extend(answers)

    def prompt_credentials(self, title: str, error_text: str) -> Optional[Tuple[str, str]]:
        self.calls.append((title, error_text))
        if not self.answers:
            return None
        if self.repeat_last and len(self.answers) == 1:
            return self.answers[0]
        return self.answers.pop(0)


@dataclass
class SeenEvent:
    event_type: EventType
    source: Any
    args: List[Any]
    user: Any = None
    session: Any = None
    permission: Any = None


@dataclass
class EventRecorder:
    seen: List[SeenEvent] = field(default_factory=list)

    def __call__(self, ev) -> None:  # noqa: ANN001
        self.seen.append(
            SeenEvent(
                event_type=ev.event_type,
                source=ev.source,
                args=ev.args,
                user=getattr(ev, "user", None),
                session=getattr(ev, "session", None),
                permission=getattr(ev, "permission", None),
            )
        )

    @property
    def types(self) -> List[str]:
        return [str(s.event_type) for s in self.seen]

    @property
    def last(self) -> SeenEvent:
        return self.seen[-1]

    def clear(self) -> None:
        self.seen.clear()
