"""
Users, roles and sessions: single-session engine with admin override and
user verification, plus a multi-session engine.
"""

from warden.core.authc.roles import SystemUserRoles, UserRole, UserRoleEditor, UserRoleManager
from warden.core.authc.session import Session
from warden.core.authc.store import InMemoryUserStore, UserIdentity, UserStore
from warden.core.authc.login import CredentialPrompt, LoginError, LoginFlow
from warden.core.authc.activator import SessionActivator
from warden.core.authc.manager import SessionManager
from warden.core.authc.multi import MultiSessionManager

__all__ = [
    "SystemUserRoles",
    "UserRole",
    "UserRoleEditor",
    "UserRoleManager",
    "Session",
    "InMemoryUserStore",
    "UserIdentity",
    "UserStore",
    "CredentialPrompt",
    "LoginError",
    "LoginFlow",
    "SessionActivator",
    "SessionManager",
    "MultiSessionManager",
]
