from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from warden.core.errors import IllegalStateError
from warden.core.events.models import Event
from warden.core.events.stats import StatsCounter
from warden.core.events.target import EventTarget
from warden.core.events.types import EventType
from warden.core.logger import get_logger

E = TypeVar("E", bound=Event)


class EventManager:
    """
    Name -> live `Event` registry.

    Lets unrelated components locate and fire the same event by its
    well-known name ("sessionOpened", "permissionEnabled_admin", ...) without
    sharing references. One instance is owned by the application's
    composition root and passed to every component that registers events.
    """

    def __init__(self, *, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or get_logger("events")
        self._lock = threading.Lock()
        self._events: Dict[str, Event] = {}
        self._stats = StatsCounter()

    def register_new_event(
        self,
        name: str,
        event_cls: Type[E],
        event_type: EventType,
        target: Optional[EventTarget] = None,
        args: Optional[Sequence[Any]] = None,
    ) -> E:
        """
        Create an event of `event_cls` and store it under `name`.

        A previous registration under the same name is replaced. Any invalid
        input is a fatal IllegalStateError: the owning component cannot
        initialize without its events.
        """
        if name is None or not str(name).strip():
            raise IllegalStateError("Event name cannot be null or empty!")
        if event_cls is None or not (isinstance(event_cls, type) and issubclass(event_cls, Event)):
            raise IllegalStateError(f"{name} Event Failed To Load! (invalid event class)", name=name)
        if event_type is None or not isinstance(event_type, EventType):
            raise IllegalStateError(f"{name} Event Failed To Load! (invalid event type)", name=name)
        if target is None:
            target = EventTarget()
        elif not isinstance(target, EventTarget):
            raise IllegalStateError(f"{name} Event Failed To Load! (invalid target)", name=name)
        try:
            ev = event_cls(target, event_type, list(args or []))
        except (TypeError, ValueError) as e:
            self.logger.error("Event registration failed: %s (%s)", name, e)
            raise IllegalStateError(f"{name} Event Failed To Load!", name=name) from e
        with self._lock:
            self._events[str(name)] = ev
        self._stats.inc_registered()
        return ev

    def unregister_event(self, name: str) -> bool:
        with self._lock:
            return self._events.pop(name, None) is not None

    def get_event(self, name: str) -> Optional[Event]:
        return self._events.get(name)

    def has_event(self, name: str) -> bool:
        return name in self._events

    def event_names(self) -> List[str]:
        with self._lock:
            return sorted(self._events.keys())

    def fire_event(self, name: str, source: Any, *args: Any, **payload: Any) -> bool:
        """
        Fire a registered event by name; False if no such event exists.

        `payload` carries the typed fields of event subclasses
        (`permission=` for PermissionEvent, `user=`/`session=` for SessionEvent).
        """
        ev = self.get_event(name)
        if ev is None:
            self._stats.inc_unknown()
            return False
        self._stats.inc_fired(name, str(ev.event_type))
        ev.fire_event(source, *args, **payload)
        return True

    def dispatch(self, event: Event, source: Any, *args: Any, **payload: Any) -> None:
        """Fire an event reference held by its owning component, counting it."""
        self._stats.inc_fired(None, str(event.event_type))
        event.fire_event(source, *args, **payload)

    def get_stats(self) -> Dict[str, Any]:
        st = self._stats.snapshot()
        return {
            "registered": len(self._events),
            "registered_total": st.registered_total,
            "fired_total": st.fired_total,
            "unknown_fired_total": st.unknown_fired_total,
            "per_name_fired": st.per_name_fired,
            "per_type_fired": st.per_type_fired,
        }

    def __copy__(self) -> "EventManager":
        raise IllegalStateError("Cloning Event Manager Is Not Allowed!")

    def __deepcopy__(self, memo: Dict[int, Any]) -> "EventManager":
        raise IllegalStateError("Cloning Event Manager Is Not Allowed!")
