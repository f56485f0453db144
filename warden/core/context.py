"""
Composition root: one event registry, one permission graph, one role
registry and one session engine, wired together and handed to the host
application as a single object.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from warden.core.authc.login import CredentialPrompt
from warden.core.authc.manager import SessionManager
from warden.core.authc.multi import MultiSessionManager
from warden.core.authc.roles import UserRoleManager
from warden.core.authc.store import UserStore
from warden.core.authz.manager import PermissionManager
from warden.core.config.models import LoginErrorMessages, WardenConfig
from warden.core.events.manager import EventManager
from warden.core.events.models import PermissionEvent, SessionEvent
from warden.core.events.subscribers import ChainedHandler, JsonlEventRecorder
from warden.core.events.target import EventHandler, EventTarget
from warden.core.events.types import EventType
from warden.core.logger import get_logger, setup_logging

UserStoreFactory = Callable[[UserRoleManager], UserStore]


@dataclass
class AuthContext:
    config: WardenConfig
    events: EventManager
    permissions: PermissionManager
    roles: UserRoleManager
    user_store: UserStore
    sessions: Union[SessionManager, MultiSessionManager]
    logger: logging.Logger
    audit: Optional[JsonlEventRecorder] = None

    @property
    def is_multi_session(self) -> bool:
        return isinstance(self.sessions, MultiSessionManager)


def _chain(target: EventTarget, event_type: EventType, handler: EventHandler) -> None:
    existing = target.get_event_handler(event_type)
    target.add_event_handler(event_type, ChainedHandler(existing, handler) if existing is not None else handler)


def build_context(
    cfg: Optional[WardenConfig],
    user_store: Union[UserStore, UserStoreFactory],
    prompt: Optional[CredentialPrompt] = None,
    multi_session: bool = False,
    *,
    configure_logging: bool = False,
) -> AuthContext:
    """
    Build a fully wired `AuthContext`.

    `user_store` may be a ready store or a factory taking the context's
    `UserRoleManager` (e.g. `InMemoryUserStore`), so the store resolves
    roles against the same permission graph.
    """
    cfg = cfg or WardenConfig()
    if configure_logging:
        setup_logging(cfg.logging.log_dir, level=logging.DEBUG if cfg.logging.debug_events else logging.INFO)
    logger = get_logger("context")

    events = EventManager()
    permissions = PermissionManager(events)
    roles = UserRoleManager(permissions)

    if callable(user_store) and (isinstance(user_store, type) or not isinstance(user_store, UserStore)):
        store = user_store(roles)
    else:
        store = user_store

    messages = cfg.login_messages
    if messages == LoginErrorMessages():
        messages = LoginErrorMessages.defaults()

    sessions: Union[SessionManager, MultiSessionManager]
    if multi_session:
        sessions = MultiSessionManager(store, events, max_sessions=cfg.session.max_sessions)
    else:
        sessions = SessionManager(store, events, permissions, prompt, config=cfg.session, messages=messages)

    if cfg.logging.debug_events:
        permissions.enable_debug_logging()
        sessions.enable_debug_logging()

    audit = None
    if cfg.audit.enabled:
        audit = JsonlEventRecorder(path=cfg.audit.path)
        for t in sorted(SessionEvent.ANY.children, key=str):
            _chain(sessions, t, audit)
        for t in (
            PermissionEvent.PERMISSIONS_APPLIED,
            PermissionEvent.PERMISSIONS_ALL_ENABLED,
            PermissionEvent.PERMISSIONS_ALL_DISABLED,
        ):
            _chain(permissions, t, audit)

    logger.info(
        "Auth context ready: mode=%s permissions=%d roles=%d audit=%s",
        "multi" if multi_session else "single",
        len(permissions.get_permission_names()),
        len(roles.get_user_roles()),
        "on" if audit is not None else "off",
    )
    return AuthContext(
        config=cfg,
        events=events,
        permissions=permissions,
        roles=roles,
        user_store=store,
        sessions=sessions,
        logger=logger,
        audit=audit,
    )
