from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from warden.core.errors import InvalidArgumentError
from warden.core.events.types import EventType

if TYPE_CHECKING:
    from warden.core.authc.session import Session
    from warden.core.authc.store import UserIdentity
    from warden.core.authz.permission import Permission
    from warden.core.events.target import EventTarget


class Event:
    """
    A reusable notification bound to one target and one event type.

    `args` only live for the duration of a single `fire_event` call; they are
    cleared afterwards so the same instance can be fired again.
    """

    ANY = EventType.ROOT

    def __init__(self, target: "EventTarget", event_type: EventType = EventType.ROOT, args: Optional[Sequence[Any]] = None):
        if target is None:
            raise InvalidArgumentError("Event target cannot be null!")
        if event_type is None:
            raise InvalidArgumentError("Event type cannot be null!")
        self._target = target
        self._event_type = event_type
        self._source: Any = None
        self._consumed = False
        self._args: List[Any] = list(args or [])

    @property
    def target(self) -> "EventTarget":
        return self._target

    @property
    def event_type(self) -> EventType:
        return self._event_type

    @property
    def source(self) -> Any:
        return self._source

    @property
    def args(self) -> List[Any]:
        return list(self._args)

    def is_consumed(self) -> bool:
        return self._consumed

    def consume(self) -> None:
        """Mark the event consumed; further dispatch of it is skipped."""
        self._consumed = True

    def fire_event(self, source: Any, *args: Any) -> None:
        self._source = source
        self._args.extend(args)
        try:
            if not self._consumed:
                self._target.fire(self, self._event_type)
        finally:
            self._args.clear()

    def copy_for(self, new_source: Any, new_target: "EventTarget") -> "Event":
        if new_source is None:
            raise InvalidArgumentError("Event source cannot be null!")
        if new_target is None:
            raise InvalidArgumentError("Event target cannot be null!")
        ev = copy.copy(self)
        ev._args = list(self._args)
        ev._source = new_source
        ev._target = new_target
        ev._consumed = False
        return ev

    def describe(self) -> Dict[str, Any]:
        """Plain-data view used by loggers and recorders."""
        return {
            "event_type": str(self._event_type),
            "source": type(self._source).__name__ if self._source is not None else None,
            "consumed": self._consumed,
            "args": [_arg_repr(a) for a in self._args],
        }

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Event):
            return NotImplemented
        return (
            self._consumed == other._consumed
            and self._source is other._source
            and self._event_type is other._event_type
            and self._target is other._target
            and self._args == other._args
        )

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return f"{type(self).__name__}(type={self._event_type}, consumed={self._consumed}, args={self._args!r})"


def _arg_repr(a: Any) -> Any:
    if a is None or isinstance(a, (str, int, float, bool)):
        return a
    name = getattr(a, "name", None)
    if isinstance(name, str):
        return name
    return type(a).__name__


class PermissionEvent(Event):
    ANY = EventType("PERMISSION")
    PERMISSION_ENABLED = ANY.create_sub_type("PERMISSION_ENABLED")
    PERMISSION_DISABLED = ANY.create_sub_type("PERMISSION_DISABLED")
    PERMISSIONS_APPLIED = ANY.create_sub_type("PERMISSIONS_APPLIED")
    PERMISSIONS_ALL_ENABLED = ANY.create_sub_type("PERMISSIONS_ALL_ENABLED")
    PERMISSIONS_ALL_DISABLED = ANY.create_sub_type("PERMISSIONS_ALL_DISABLED")

    def __init__(self, target: "EventTarget", event_type: EventType = ANY, args: Optional[Sequence[Any]] = None):
        super().__init__(target, event_type, args)
        self.permission: Optional["Permission"] = None

    def fire_event(self, source: Any, *args: Any, permission: Optional["Permission"] = None) -> None:
        self.permission = permission
        super().fire_event(source, *args)

    def describe(self) -> Dict[str, Any]:
        out = super().describe()
        out["permission"] = self.permission.name if self.permission is not None else None
        return out


class SessionEvent(Event):
    ANY = EventType("SESSION")
    SESSION_LOGIN_SUCCESS = ANY.create_sub_type("SESSION_LOGIN_SUCCESS")
    SESSION_LOGIN_FAILURE = ANY.create_sub_type("SESSION_LOGIN_FAILURE")
    SESSION_OPENED = ANY.create_sub_type("SESSION_OPENED")
    SESSION_CLOSED = ANY.create_sub_type("SESSION_CLOSED")
    MULTI_SESSION_OPENED = ANY.create_sub_type("MULTI_SESSION_OPENED")
    MULTI_SESSION_CLOSED = ANY.create_sub_type("MULTI_SESSION_CLOSED")
    SESSION_ADMIN_OVERRIDE_STARTED = ANY.create_sub_type("SESSION_ADMIN_OVERRIDE_STARTED")
    SESSION_ADMIN_OVERRIDE_SUCCESS = ANY.create_sub_type("SESSION_ADMIN_OVERRIDE_SUCCESS")
    SESSION_ADMIN_OVERRIDE_FAILURE = ANY.create_sub_type("SESSION_ADMIN_OVERRIDE_FAILURE")
    SESSION_USER_VERIFY_STARTED = ANY.create_sub_type("SESSION_USER_VERIFY_STARTED")
    SESSION_USER_VERIFY_SUCCESS = ANY.create_sub_type("SESSION_USER_VERIFY_SUCCESS")
    SESSION_USER_VERIFY_FAILURE = ANY.create_sub_type("SESSION_USER_VERIFY_FAILURE")

    def __init__(self, target: "EventTarget", event_type: EventType = ANY, args: Optional[Sequence[Any]] = None):
        super().__init__(target, event_type, args)
        self.session: Optional["Session"] = None
        self.user: Optional["UserIdentity"] = None

    def fire_event(
        self,
        source: Any,
        *args: Any,
        user: Optional["UserIdentity"] = None,
        session: Optional["Session"] = None,
    ) -> None:
        self.user = user
        self.session = session
        super().fire_event(source, *args)

    def describe(self) -> Dict[str, Any]:
        out = super().describe()
        out["username"] = self.user.username if self.user is not None else None
        out["session_user"] = self.session.username if self.session is not None else None
        return out
