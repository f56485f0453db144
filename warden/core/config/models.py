from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SessionConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # -1 = unlimited, 0 = logins blocked, N = cap (multi-session mode only)
    max_sessions: int = Field(default=-1, ge=-1)
    retry_login_on_failure: bool = True
    max_login_attempts: int = Field(default=5, ge=1, le=100)
    program_name: str = ""


class LoginErrorMessages(BaseModel):
    model_config = ConfigDict(extra="forbid")

    incorrect_credentials: str = ""
    locked_account: str = ""
    expired_credentials: str = ""
    disabled_role: str = ""
    excessive_attempts: str = ""

    @classmethod
    def defaults(cls) -> "LoginErrorMessages":
        return cls(
            incorrect_credentials="Invalid Username Or Password, Please Try Again!",
            locked_account="Unable To Complete Login, Account Is Locked!",
            expired_credentials="Unable To Complete Login, Password Is Expired!",
            disabled_role="Unable To Complete Login, User Role Is Disabled!",
            excessive_attempts="Account Is Locked Due To Too Many Invalid Login Attempts!",
        )


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    log_dir: str = "logs"
    debug_events: bool = False


class AuditConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    path: str = "logs/authz_events.jsonl"


class WardenConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    config_version: int = Field(default=1, ge=1)
    session: SessionConfig = Field(default_factory=SessionConfig)
    login_messages: LoginErrorMessages = Field(default_factory=LoginErrorMessages)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
