from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

from warden.core.events.types import EventType

if TYPE_CHECKING:
    from warden.core.events.models import Event


EventHandler = Callable[["Event"], None]


class EventTarget:
    """
    Per-object handler registry: one handler per exact `EventType`.

    Registering a second handler for a type replaces the first. `fire` only
    invokes the handler registered for the exact type being fired; handlers
    on a supertype are not consulted.
    """

    def __init__(self) -> None:
        self._handlers_lock = threading.Lock()
        self._handlers: Dict[EventType, EventHandler] = {}

    def add_event_handler(self, event_type: EventType, handler: Optional[EventHandler]) -> None:
        with self._handlers_lock:
            if handler is None:
                self._handlers.pop(event_type, None)
            else:
                self._handlers[event_type] = handler

    def remove_event_handler(self, event_type: EventType) -> None:
        with self._handlers_lock:
            self._handlers.pop(event_type, None)

    def get_event_handler(self, event_type: EventType) -> Optional[EventHandler]:
        return self._handlers.get(event_type)

    def event_handlers(self) -> List[Tuple[EventType, EventHandler]]:
        with self._handlers_lock:
            return list(self._handlers.items())

    def fire(self, event: "Event", event_type: EventType) -> None:
        for registered, handler in self.event_handlers():
            if event.is_consumed():
                return
            if registered is event_type:
                handler(event)

    def fire_hierarchy(self, event: "Event", event_type: EventType) -> None:
        """
        Dispatch to the exact type first, then to each ancestor type in turn.

        This is a separate lookup pass; `fire` itself never walks the tree.
        Stops as soon as a handler consumes the event.
        """
        for t in event_type.lineage():
            if event.is_consumed():
                return
            handler = self.get_event_handler(t)
            if handler is not None:
                handler(event)
