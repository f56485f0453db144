from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class DispatchStats:
    registered_total: int = 0
    fired_total: int = 0
    unknown_fired_total: int = 0
    per_name_fired: Dict[str, int] = field(default_factory=dict)
    per_type_fired: Dict[str, int] = field(default_factory=dict)


class StatsCounter:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stats = DispatchStats()

    def snapshot(self) -> DispatchStats:
        with self._lock:
            s = self._stats
            return DispatchStats(
                registered_total=s.registered_total,
                fired_total=s.fired_total,
                unknown_fired_total=s.unknown_fired_total,
                per_name_fired=dict(s.per_name_fired),
                per_type_fired=dict(s.per_type_fired),
            )

    def inc_registered(self, n: int = 1) -> None:
        with self._lock:
            self._stats.registered_total += int(n)

    def inc_fired(self, name: Optional[str], event_type: str) -> None:
        with self._lock:
            self._stats.fired_total += 1
            if name is not None:
                self._stats.per_name_fired[name] = int(self._stats.per_name_fired.get(name, 0) + 1)
            self._stats.per_type_fired[event_type] = int(self._stats.per_type_fired.get(event_type, 0) + 1)

    def inc_unknown(self, n: int = 1) -> None:
        with self._lock:
            self._stats.unknown_fired_total += int(n)
