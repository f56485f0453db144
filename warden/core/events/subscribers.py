from __future__ import annotations

import json
import logging
import os
import threading
import time
from typing import Callable, Optional

from warden.core.events.models import Event
from warden.core.logger import get_logger
from warden.core.redaction import redact


class JsonlEventRecorder:
    """
    Appends one JSON line per handled event to an audit file (redacted payload only).
    """

    def __init__(self, *, path: str = os.path.join("logs", "authz_events.jsonl")):
        self.path = path
        self._lock = threading.Lock()
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

    def __call__(self, ev: Event) -> None:
        record = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            **redact(ev.describe()),
        }
        line = json.dumps(record, ensure_ascii=False, default=str)
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")


class LoggingEventHandler:
    """
    Writes one log line per event.

    `render` turns the event into the message; the default uses the event
    type and whatever payload the event carries.
    """

    def __init__(
        self,
        *,
        logger: Optional[logging.Logger] = None,
        level: int = logging.INFO,
        render: Optional[Callable[[Event], str]] = None,
    ):
        self.logger = logger or get_logger("events")
        self.level = level
        self.render = render

    def __call__(self, ev: Event) -> None:
        if self.render is not None:
            msg = self.render(ev)
        else:
            d = ev.describe()
            extra = {k: v for k, v in d.items() if k not in {"event_type", "consumed"} and v not in (None, [])}
            msg = f"EVENT: {d['event_type']} {extra}" if extra else f"EVENT: {d['event_type']}"
        self.logger.log(self.level, msg)


class ChainedHandler:
    """Runs several handlers for one event type in order (targets hold one handler per type)."""

    def __init__(self, *handlers: Callable[[Event], None]):
        self.handlers = [h for h in handlers if h is not None]

    def __call__(self, ev: Event) -> None:
        for h in self.handlers:
            if ev.is_consumed():
                return
            h(ev)
