from __future__ import annotations

import logging
import threading
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, FrozenSet, Iterable, Mapping, Optional, Set

from warden.core.errors import IllegalStateError, InvalidArgumentError, require_name
from warden.core.logger import get_logger

if TYPE_CHECKING:
    from warden.core.authz.manager import PermissionManager


class SystemUserRoles(str, Enum):
    """Built-in roles and the permission set each one starts with."""

    ADMIN = "admin"
    EDITOR = "editor"
    AUTHOR = "author"
    BASIC = "basic"
    NONE = "none"

    @property
    def permissions(self) -> FrozenSet[str]:
        return _SYSTEM_ROLE_PERMISSIONS[self.value]

    @classmethod
    def names(cls) -> Set[str]:
        return {r.value for r in cls}


_SYSTEM_ROLE_PERMISSIONS: Dict[str, FrozenSet[str]] = {
    "admin": frozenset({"admin", "edit", "create", "read"}),
    "editor": frozenset({"edit", "create", "read"}),
    "author": frozenset({"create", "read"}),
    "basic": frozenset({"read"}),
    "none": frozenset(),
}


class UserRole:
    """
    A named bundle of permission names plus an enabled flag.

    When bound to a `PermissionManager`, added names must exist there.
    """

    def __init__(
        self,
        name: str,
        permissions: Optional[Iterable[str]] = None,
        *,
        enabled: bool = True,
        permission_manager: Optional["PermissionManager"] = None,
    ):
        self._name = require_name(name)
        self._permissions: Set[str] = set(permissions or ())
        self._enabled = bool(enabled)
        self._permission_manager = permission_manager

    @property
    def name(self) -> str:
        return self._name

    @property
    def permissions(self) -> FrozenSet[str]:
        return frozenset(self._permissions)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def is_enabled(self) -> bool:
        return self._enabled

    def is_system_role(self) -> bool:
        return self._name in SystemUserRoles.names()

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        if self.is_system_role():
            raise IllegalStateError("This role is a system role and cannot be disabled!", role=self._name)
        self._enabled = False

    def _permission_known(self, name: str) -> bool:
        pm = self._permission_manager
        return pm is None or pm.does_permission_exist(name)

    def has_permission(self, name: str) -> bool:
        """True if the role holds `name` directly or holds its top-level parent."""
        if not name or not self._permission_known(name):
            return False
        if name in self._permissions:
            return True
        if ":" in name:
            return name.split(":", 1)[0] in self._permissions
        return False

    def has_permissions(self, *names: str) -> bool:
        return all(self.has_permission(n) for n in names)

    def _check_can_add(self, name: str) -> str:
        name = require_name(name)
        if self._name == SystemUserRoles.NONE.value:
            raise IllegalStateError("Permissions cannot be added to user role NONE!", role=self._name)
        return name

    def add_permission(self, name: str) -> bool:
        """
        Add `name` unless it is unknown or already implied by a held parent.
        """
        name = self._check_can_add(name)
        if self.has_permission(name):
            return False
        return self._add(name)

    def add_permissions(self, *names: str) -> bool:
        return all([self.add_permission(n) for n in names])

    def add_implicit_permission(self, name: str) -> bool:
        """Add `name` even if a held parent already implies it."""
        name = self._check_can_add(name)
        return self._add(name)

    def add_implicit_permissions(self, *names: str) -> bool:
        return all([self.add_implicit_permission(n) for n in names])

    def _add(self, name: str) -> bool:
        if not self._permission_known(name) or name in self._permissions:
            return False
        self._permissions.add(name)
        return True

    def remove_permission(self, name: str) -> bool:
        name = require_name(name)
        if name not in self._permissions:
            return False
        self._permissions.discard(name)
        return True

    def remove_permissions(self, *names: str) -> bool:
        return all([self.remove_permission(n) for n in names])

    def modify(self) -> "UserRoleEditor":
        return UserRoleEditor(self)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, UserRole):
            return NotImplemented
        return (
            self._name == other._name
            and self._permissions == other._permissions
            and self._enabled == other._enabled
        )

    def __hash__(self) -> int:
        return hash(self._name)

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"UserRole(name={self._name!r}, permissions={sorted(self._permissions)!r}, enabled={self._enabled})"


class UserRoleEditor:
    """Fluent editor returned by `UserRole.modify()`; any failed step raises."""

    def __init__(self, role: UserRole):
        self.role = role

    def _check(self, ok: bool, action: str, names: Iterable[str]) -> "UserRoleEditor":
        if not ok:
            joined = ", ".join(names)
            raise IllegalStateError(
                f'Modification Failed! Could Not {action} "{joined}" on user role "{self.role.name}"!',
                role=self.role.name,
            )
        return self

    def add(self, *names: str) -> "UserRoleEditor":
        return self._check(self.role.add_permissions(*names), "Add Permission", names)

    def add_implicit(self, *names: str) -> "UserRoleEditor":
        return self._check(self.role.add_implicit_permissions(*names), "Add Implicit Permission", names)

    def remove(self, *names: str) -> "UserRoleEditor":
        return self._check(self.role.remove_permissions(*names), "Remove Permission", names)


class UserRoleManager:
    """
    Registry of user roles. The five system roles are created up front and
    reused for the lifetime of the manager.
    """

    def __init__(
        self,
        permission_manager: Optional["PermissionManager"] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.permission_manager = permission_manager
        self.logger = logger or get_logger("roles")
        self._lock = threading.Lock()
        self._roles: Dict[str, UserRole] = {}
        for sys_role in SystemUserRoles:
            self._roles[sys_role.value] = UserRole(
                sys_role.value, sys_role.permissions, permission_manager=permission_manager
            )

    def create_user_role(self, name: str) -> UserRole:
        """Create a role, or return the existing one registered under `name`."""
        name = require_name(name)
        with self._lock:
            existing = self._roles.get(name)
            if existing is not None:
                return existing
            role = UserRole(name, permission_manager=self.permission_manager)
            self._roles[name] = role
        self.logger.debug("User role created: %s", name)
        return role

    def add_existing_user_role(self, role: UserRole) -> None:
        if role is None:
            raise InvalidArgumentError("Role cannot be null!")
        with self._lock:
            self._roles.setdefault(role.name, role)

    def get_user_role(self, name: str) -> Optional[UserRole]:
        return self._roles.get(name)

    def get_system_role(self, role: SystemUserRoles) -> UserRole:
        return self._roles[SystemUserRoles(role).value]

    def get_user_roles(self) -> Mapping[str, UserRole]:
        with self._lock:
            return MappingProxyType(dict(self._roles))

    def __copy__(self) -> "UserRoleManager":
        raise IllegalStateError("Cloning User Role Manager Is Not Allowed!")

    def __deepcopy__(self, memo: Dict[int, object]) -> "UserRoleManager":
        raise IllegalStateError("Cloning User Role Manager Is Not Allowed!")
