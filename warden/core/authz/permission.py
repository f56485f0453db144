from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional, Set

from warden.core.errors import AuthorizationError
from warden.core.events.models import PermissionEvent
from warden.core.events.target import EventHandler, EventTarget

if TYPE_CHECKING:
    from warden.core.authz.manager import PermissionManager


SEPARATOR = ":"


def base_name(name: str) -> str:
    return name.rsplit(SEPARATOR, 1)[-1]


def full_name(name: str, parent_name: Optional[str]) -> str:
    if parent_name is None or not parent_name.strip():
        return name
    return f"{parent_name}{SEPARATOR}{name}"


class Permission(EventTarget):
    """
    One node of the permission graph.

    Children are held by full name only and resolved through the owning
    manager at cascade time, so a child removed elsewhere is simply skipped.
    Enabled/disabled events fire only when the flag actually changes.
    """

    def __init__(self, name: str, parent_name: Optional[str], manager: "PermissionManager"):
        super().__init__()
        if parent_name and parent_name.strip() and not manager.does_permission_exist(parent_name):
            raise AuthorizationError(f'Parent Permission "{parent_name}" Not Found!', parent=parent_name)
        self._manager = manager
        self._name = full_name(name, parent_name)
        self._enabled = False
        self._children: Set[str] = set()
        self._enabled_event_name = f"permissionEnabled_{self._name}"
        self._disabled_event_name = f"permissionDisabled_{self._name}"
        self._event_enabled = manager.events.register_new_event(
            self._enabled_event_name, PermissionEvent, PermissionEvent.PERMISSION_ENABLED, target=self
        )
        self._event_disabled = manager.events.register_new_event(
            self._disabled_event_name, PermissionEvent, PermissionEvent.PERMISSION_DISABLED, target=self
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def base_name(self) -> str:
        return base_name(self._name)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def is_enabled(self) -> bool:
        return self._enabled

    def is_disabled(self) -> bool:
        return not self._enabled

    # ---- state ----
    def enable(self) -> None:
        """Enable this permission and, depth-first, every live child."""
        with self._manager.lock:
            self._set_enabled(True)
            for child in self._live_children():
                child.enable()

    def disable(self) -> None:
        """Disable this permission and, depth-first, every live child."""
        with self._manager.lock:
            self._set_enabled(False)
            for child in self._live_children():
                child.disable()

    def set_enabled(self, enabled: bool) -> None:
        if enabled:
            self.enable()
        else:
            self.disable()

    def _set_enabled(self, value: bool) -> None:
        if self._enabled == value:
            return
        self._enabled = value
        ev = self._event_enabled if value else self._event_disabled
        self._manager.events.dispatch(ev, self, permission=self)

    def _live_children(self) -> Iterable["Permission"]:
        for name in sorted(self._children):
            child = self._manager.find_permission(name)
            if child is not None:
                yield child

    # ---- children ----
    @property
    def children(self) -> Set[str]:
        return set(self._children)

    def has_child_permission(self, name: str) -> bool:
        return name in self._children

    def has_child_permissions(self, names: Iterable[str]) -> bool:
        return all(self.has_child_permission(n) for n in names)

    def add_new_child_permission(self, name: str) -> bool:
        return self._manager.add_custom_permission(name, self._name)

    def add_and_enable_new_child_permission(self, name: str) -> bool:
        return self._manager.add_and_enable_custom_permission(name, self._name)

    def remove_child_permission(self, name: str) -> bool:
        """Unlink `name` and delete it from the manager."""
        if name not in self._children:
            return False
        return self._manager.remove_permission(name)

    def copy_to_new_parent(self, new_parent_name: str) -> bool:
        """
        Recreate this permission (and its subtree) under `new_parent_name`.

        The copy carries over this permission's enabled/disabled handlers and
        starts with the new parent's current state.
        """
        if new_parent_name == self._name or str(new_parent_name or "").startswith(self._name + SEPARATOR):
            return False
        base = self.base_name
        new_name = full_name(base, new_parent_name)
        with self._manager.lock:
            if self._manager.does_permission_exist(new_name):
                return False
            if not self._manager.add_custom_permission(base, new_parent_name):
                return False
            copy = self._manager.get_permission(new_name)
            copy.set_on_enabled(self.get_on_enabled())
            copy.set_on_disabled(self.get_on_disabled())
            self._copy_children(new_name, set(self._children))
        return True

    def _copy_children(self, new_parent_name: str, names: Iterable[str]) -> None:
        for name in sorted(names):
            if not self._manager.does_permission_exist(name):
                continue
            self._manager.add_custom_permission(base_name(name), new_parent_name)
            grandchildren = self._manager.get_permission_children(name)
            if grandchildren:
                self._copy_children(full_name(base_name(name), new_parent_name), grandchildren)

    def _link_child(self, name: str) -> None:
        self._children.add(name)

    def _unlink_child(self, name: str) -> bool:
        if name in self._children:
            self._children.discard(name)
            return True
        return False

    # ---- handlers ----
    def set_on_enabled(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(PermissionEvent.PERMISSION_ENABLED, handler)

    def set_on_disabled(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(PermissionEvent.PERMISSION_DISABLED, handler)

    def get_on_enabled(self) -> Optional[EventHandler]:
        return self.get_event_handler(PermissionEvent.PERMISSION_ENABLED)

    def get_on_disabled(self) -> Optional[EventHandler]:
        return self.get_event_handler(PermissionEvent.PERMISSION_DISABLED)

    @property
    def event_names(self) -> tuple:
        return (self._enabled_event_name, self._disabled_event_name)

    def __repr__(self) -> str:
        return f"Permission(name={self._name!r}, enabled={self._enabled}, children={sorted(self._children)!r})"
