"""
Hierarchical permission graph with cascading enable/disable.
"""

from warden.core.authz.permission import Permission
from warden.core.authz.manager import PermissionManager, SystemPermissions

__all__ = ["Permission", "PermissionManager", "SystemPermissions"]
