"""
Typed event dispatch: event types, events, per-object targets and the
name -> event registry.
"""

from warden.core.events.types import EventType
from warden.core.events.models import Event, PermissionEvent, SessionEvent
from warden.core.events.target import EventHandler, EventTarget
from warden.core.events.manager import EventManager
from warden.core.events.subscribers import ChainedHandler, JsonlEventRecorder, LoggingEventHandler

__all__ = [
    "EventType",
    "Event",
    "PermissionEvent",
    "SessionEvent",
    "EventHandler",
    "EventTarget",
    "EventManager",
    "ChainedHandler",
    "JsonlEventRecorder",
    "LoggingEventHandler",
]
