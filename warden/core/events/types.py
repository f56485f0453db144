from __future__ import annotations

import threading
from typing import Iterator, List, Optional, Set

from warden.core.errors import InvalidArgumentError


class EventType:
    """
    Named classification token for events.

    Types form a tree rooted at `EventType.ROOT` ("any event"). Sibling names
    are unique; constructing a second sibling with the same name fails.
    Types only label events: `EventTarget.fire` matches on the exact type and
    never walks this tree (see `EventTarget.fire_hierarchy` for that).
    """

    ROOT: "EventType"

    _tree_lock = threading.Lock()

    __slots__ = ("_name", "_parent", "_children")

    def __init__(self, name: Optional[str], parent: Optional["EventType"] = None, *, _root: bool = False):
        if parent is None and not _root:
            parent = EventType.ROOT
        self._name = name
        self._parent = parent
        self._children: Set[EventType] = set()
        if parent is not None:
            parent._add_child(self)

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def parent(self) -> Optional["EventType"]:
        return self._parent

    @property
    def children(self) -> Set["EventType"]:
        return set(self._children)

    def create_sub_type(self, name: Optional[str]) -> "EventType":
        return EventType(name, self)

    def is_root(self) -> bool:
        return self._parent is None

    def is_sub_type_of(self, other: "EventType") -> bool:
        """True if `other` is this type or one of its ancestors."""
        return any(t is other for t in self.lineage())

    def lineage(self) -> Iterator["EventType"]:
        t: Optional[EventType] = self
        while t is not None:
            yield t
            t = t._parent

    def path(self) -> List[str]:
        return [str(t) for t in reversed(list(self.lineage()))]

    def _add_child(self, child: "EventType") -> None:
        with EventType._tree_lock:
            for existing in self._children:
                if existing._name == child._name:
                    raise InvalidArgumentError(
                        f'EventType "{child}" with parent "{self}" already exists',
                        name=child._name,
                        parent=self._name,
                    )
            self._children.add(child)

    def __repr__(self) -> str:
        return f"EventType({'.'.join(self.path())})"

    def __str__(self) -> str:
        return self._name if self._name is not None else f"<unnamed:{id(self):x}>"


EventType.ROOT = EventType("EVENT", None, _root=True)
