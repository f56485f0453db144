from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from warden.core.errors import AuthorizationError, IllegalStateError, InvalidArgumentError
from warden.core.events.manager import EventManager
from warden.core.events.models import PermissionEvent
from warden.core.events.subscribers import LoggingEventHandler
from warden.core.events.target import EventHandler, EventTarget
from warden.core.authz.permission import Permission, full_name
from warden.core.logger import get_logger


class SystemPermissions(str, Enum):
    ADMIN = "admin"
    EDIT = "edit"
    CREATE = "create"
    READ = "read"

    @classmethod
    def names(cls) -> List[str]:
        return [p.value for p in cls]


class PermissionManager(EventTarget):
    """
    Registry of every `Permission` in the application.

    The four system roots always exist. All mutations, including cascades,
    run under one re-entrant lock; enabled-state reads do not take it.
    """

    def __init__(self, events: EventManager, *, logger: Optional[logging.Logger] = None) -> None:
        super().__init__()
        self.events = events
        self.logger = logger or get_logger("authz")
        self.lock = threading.RLock()
        self._permissions: Dict[str, Permission] = {}

        self._ev_applied = events.register_new_event(
            "permissionsApplied", PermissionEvent, PermissionEvent.PERMISSIONS_APPLIED, target=self
        )
        self._ev_all_enabled = events.register_new_event(
            "permissionsAllEnabled", PermissionEvent, PermissionEvent.PERMISSIONS_ALL_ENABLED, target=self
        )
        self._ev_all_disabled = events.register_new_event(
            "permissionsAllDisabled", PermissionEvent, PermissionEvent.PERMISSIONS_ALL_DISABLED, target=self
        )

        for name in SystemPermissions.names():
            self._permissions[name] = Permission(name, None, self)

    # ---- lookup ----
    def does_permission_exist(self, name: Optional[str]) -> bool:
        return name is not None and name in self._permissions

    def find_permission(self, name: str) -> Optional[Permission]:
        return self._permissions.get(name)

    def get_permission(self, name: str) -> Permission:
        p = self._permissions.get(name)
        if p is None:
            raise AuthorizationError(f'Permission "{name}" Not Found!', name=name)
        return p

    def get_permissions(self) -> Dict[str, Permission]:
        with self.lock:
            return dict(self._permissions)

    def get_permission_names(self) -> List[str]:
        with self.lock:
            return sorted(self._permissions.keys())

    def get_permission_children(self, name: str) -> Optional[Set[str]]:
        p = self._permissions.get(name)
        return p.children if p is not None else None

    def is_permission_enabled(self, name: str) -> bool:
        p = self._permissions.get(name)
        return p is not None and p.enabled

    def is_permission_disabled(self, name: str) -> bool:
        # Unknown names report disabled for both queries; the two are not complements.
        p = self._permissions.get(name)
        return p is None or not p.enabled

    # ---- graph mutation ----
    def add_custom_permission(self, name: str, parent_name: Optional[str] = None) -> bool:
        """
        Add a root permission, or a child of `parent_name`.

        Returns False when the parent is missing, the name equals the parent,
        or the full name is already taken. A child starts in its parent's
        current state.
        """
        if name is None or not str(name).strip():
            return False
        has_parent = parent_name is not None and str(parent_name).strip() != ""
        with self.lock:
            if has_parent:
                if name == parent_name:
                    return False
                parent = self._permissions.get(parent_name)
                if parent is None:
                    return False
                new_name = full_name(name, parent_name)
                if new_name in self._permissions:
                    return False
                child = Permission(name, parent_name, self)
                self._permissions[new_name] = child
                parent._link_child(new_name)
                if parent.enabled:
                    child.enable()
            else:
                if name in self._permissions:
                    return False
                self._permissions[name] = Permission(name, None, self)
        self.logger.debug("Permission added: %s", full_name(name, parent_name if has_parent else None))
        return True

    def add_and_enable_custom_permission(self, name: str, parent_name: Optional[str] = None) -> bool:
        with self.lock:
            if not self.add_custom_permission(name, parent_name):
                return False
            has_parent = parent_name is not None and str(parent_name).strip() != ""
            return self.enable_permission(full_name(name, parent_name if has_parent else None))

    def remove_permission(self, name: str) -> bool:
        """
        Delete `name`. System roots are never removed.

        The name is stripped from every child set; the removed permission's
        own children stay behind as orphaned roots.
        """
        if name in SystemPermissions.names():
            return False
        with self.lock:
            if name not in self._permissions:
                return False
            for p in self._permissions.values():
                p._unlink_child(name)
            removed = self._permissions.pop(name)
            for ev_name in removed.event_names:
                self.events.unregister_event(ev_name)
        self.logger.debug("Permission removed: %s", name)
        return True

    def enable_permission(self, name: str) -> bool:
        with self.lock:
            p = self._permissions.get(name)
            if p is None:
                return False
            p.enable()
            return True

    def disable_permission(self, name: str) -> bool:
        with self.lock:
            p = self._permissions.get(name)
            if p is None:
                return False
            p.disable()
            return True

    # ---- bulk ----
    def load_permissions(self, role_or_flag: Any) -> None:
        """
        `load_permissions(True/False)` sets every permission at once.
        `load_permissions(role)` applies a role: the four system roots are
        disabled and then exactly the role's permissions are enabled. Custom
        permissions outside the role keep their state.
        """
        if isinstance(role_or_flag, bool):
            self._load_all(role_or_flag)
            return
        if role_or_flag is None:
            raise InvalidArgumentError("Role cannot be null!")
        perms = getattr(role_or_flag, "permissions", None)
        if perms is None:
            raise InvalidArgumentError("Role has no permission set!", role=type(role_or_flag).__name__)
        with self.lock:
            for root in SystemPermissions.names():
                self._permissions[root].disable()
            for name in sorted(perms):
                p = self._permissions.get(name)
                if p is not None:
                    p.enable()
            self.events.dispatch(self._ev_applied, self, role_or_flag)
        self.logger.info("Permissions applied for role: %s", getattr(role_or_flag, "name", role_or_flag))

    def _load_all(self, enable: bool) -> None:
        with self.lock:
            for p in list(self._permissions.values()):
                p.set_enabled(enable)
            ev = self._ev_all_enabled if enable else self._ev_all_disabled
            self.events.dispatch(ev, self)
        self.logger.info("All permissions %s", "enabled" if enable else "disabled")

    # ---- system shortcuts ----
    def get_admin_permission(self) -> Permission:
        return self._permissions[SystemPermissions.ADMIN.value]

    def get_edit_permission(self) -> Permission:
        return self._permissions[SystemPermissions.EDIT.value]

    def get_create_permission(self) -> Permission:
        return self._permissions[SystemPermissions.CREATE.value]

    def get_read_permission(self) -> Permission:
        return self._permissions[SystemPermissions.READ.value]

    def is_admin_permission_enabled(self) -> bool:
        return self.is_permission_enabled(SystemPermissions.ADMIN.value)

    def is_edit_permission_enabled(self) -> bool:
        return self.is_permission_enabled(SystemPermissions.EDIT.value)

    def is_create_permission_enabled(self) -> bool:
        return self.is_permission_enabled(SystemPermissions.CREATE.value)

    def is_read_permission_enabled(self) -> bool:
        return self.is_permission_enabled(SystemPermissions.READ.value)

    def set_admin_permission(self, value: bool) -> None:
        self.get_admin_permission().set_enabled(value)

    def set_edit_permission(self, value: bool) -> None:
        self.get_edit_permission().set_enabled(value)

    def set_create_permission(self, value: bool) -> None:
        self.get_create_permission().set_enabled(value)

    def set_read_permission(self, value: bool) -> None:
        self.get_read_permission().set_enabled(value)

    # ---- handlers ----
    def set_permission_on_enabled(self, name: str, handler: Optional[EventHandler]) -> bool:
        p = self._permissions.get(name)
        if p is None:
            return False
        p.set_on_enabled(handler)
        return True

    def set_permission_on_disabled(self, name: str, handler: Optional[EventHandler]) -> bool:
        p = self._permissions.get(name)
        if p is None:
            return False
        p.set_on_disabled(handler)
        return True

    def set_on_permissions_applied(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(PermissionEvent.PERMISSIONS_APPLIED, handler)

    def set_on_all_permissions_enabled(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(PermissionEvent.PERMISSIONS_ALL_ENABLED, handler)

    def set_on_all_permissions_disabled(self, handler: Optional[EventHandler]) -> None:
        self.add_event_handler(PermissionEvent.PERMISSIONS_ALL_DISABLED, handler)

    def enable_debug_logging(self) -> None:
        """Log bulk events and system-root toggles through `warden.authz`."""
        log = LoggingEventHandler(logger=self.logger, level=logging.DEBUG)
        self.set_on_permissions_applied(log)
        self.set_on_all_permissions_enabled(log)
        self.set_on_all_permissions_disabled(log)
        for name in SystemPermissions.names():
            self.set_permission_on_enabled(name, log)
            self.set_permission_on_disabled(name, log)

    def disable_debug_logging(self) -> None:
        self.set_on_permissions_applied(None)
        self.set_on_all_permissions_enabled(None)
        self.set_on_all_permissions_disabled(None)
        for name in SystemPermissions.names():
            self.set_permission_on_enabled(name, None)
            self.set_permission_on_disabled(name, None)

    def __copy__(self) -> "PermissionManager":
        raise IllegalStateError("Cloning Permission Manager Is Not Allowed!")

    def __deepcopy__(self, memo: Dict[int, Any]) -> "PermissionManager":
        raise IllegalStateError("Cloning Permission Manager Is Not Allowed!")
