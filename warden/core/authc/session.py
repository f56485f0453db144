from __future__ import annotations

from dataclasses import dataclass

from warden.core.authc.roles import UserRole
from warden.core.errors import InvalidArgumentError, require_name


@dataclass(frozen=True)
class Session:
    """One authenticated principal: the username and the role it held at login."""

    username: str
    user_role: UserRole

    def __post_init__(self) -> None:
        require_name(self.username, "Username")
        if self.user_role is None:
            raise InvalidArgumentError("User role cannot be null!")
