from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from warden.core.redaction import redact


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class WardenError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.user_message)

    def __str__(self) -> str:
        return self.user_message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": redact(self.context or {}),
        }


# ---- Programmer / configuration faults (never retried) ----
class InvalidArgumentError(WardenError, ValueError):
    def __init__(self, user_message: str = "Invalid argument.", **ctx: Any):
        super().__init__("invalid_argument", user_message, severity=Severity.ERROR, recoverable=False, context=ctx)


class IllegalStateError(WardenError, RuntimeError):
    def __init__(self, user_message: str = "Illegal state.", code: str = "illegal_state", **ctx: Any):
        super().__init__(code, user_message, severity=Severity.ERROR, recoverable=False, context=ctx)


class RoleDisabledError(IllegalStateError):
    def __init__(self, user_message: str = "User role is disabled.", **ctx: Any):
        super().__init__(user_message, code="role_disabled", **ctx)


class ConfigError(WardenError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


# ---- Lookup / collaborator faults ----
class AuthorizationError(WardenError, LookupError):
    def __init__(self, user_message: str = "Permission not found.", **ctx: Any):
        super().__init__("permission_not_found", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class AccountLockedError(WardenError):
    def __init__(self, user_message: str = "Account is locked.", **ctx: Any):
        super().__init__("account_locked", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


class CredentialsExpiredError(WardenError):
    def __init__(self, user_message: str = "Password has expired.", **ctx: Any):
        super().__init__("credentials_expired", user_message, severity=Severity.WARN, recoverable=True, context=ctx)


def require_name(value: Any, what: str = "Name") -> str:
    """Validate a non-empty string argument at a call boundary."""
    if value is None or not str(value).strip():
        raise InvalidArgumentError(f"{what} cannot be null or empty!")
    return str(value)
