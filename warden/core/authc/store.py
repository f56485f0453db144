"""
User store interface plus a reference in-memory implementation.

The session engine only ever talks to a `UserStore`; persistence, SQL and
account management live behind it. `InMemoryUserStore` hashes passwords with
scrypt and is meant for embedding and tests.
"""

from __future__ import annotations

import secrets
import threading
from typing import Dict, Optional, Protocol, runtime_checkable

from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from pydantic import BaseModel, ConfigDict, Field

from warden.core.authc.roles import UserRole, UserRoleManager
from warden.core.errors import InvalidArgumentError, require_name


def _scrypt_hash(password: str, salt: bytes, n: int = 2**14, r: int = 8, p: int = 1) -> bytes:
    kdf = Scrypt(salt=salt, length=32, n=n, r=r, p=p)
    return kdf.derive(password.encode("utf-8"))


class UserIdentity(BaseModel):
    model_config = ConfigDict(extra="forbid")

    username: str = Field(min_length=1, max_length=120)
    display_name: str = Field(default="", max_length=120)
    role_name: str = "basic"
    locked: bool = False
    password_expired: bool = False


@runtime_checkable
class UserStore(Protocol):
    def user_exists(self, username: str) -> bool: ...

    def get_user(self, username: str) -> Optional[UserIdentity]: ...

    def get_user_role(self, username: str) -> UserRole: ...

    def check_password_matches(self, username: str, password: str) -> bool: ...


class InMemoryUserStore:
    """
    Dict-backed `UserStore`. Usernames are case-insensitive.

    Password records keep only salt, digest and the KDF parameters.
    """

    def __init__(self, role_manager: UserRoleManager, *, kdf_n: int = 2**14) -> None:
        self.role_manager = role_manager
        self.kdf_n = int(kdf_n)
        self._lock = threading.Lock()
        self._users: Dict[str, UserIdentity] = {}
        self._passwords: Dict[str, Dict[str, object]] = {}

    @staticmethod
    def _key(username: str) -> str:
        return str(username or "").strip().lower()

    def add_user(
        self,
        username: str,
        password: str,
        role_name: str = "basic",
        *,
        display_name: str = "",
        locked: bool = False,
        password_expired: bool = False,
    ) -> UserIdentity:
        key = self._key(require_name(username, "Username"))
        if password is None:
            raise InvalidArgumentError("Password cannot be null!")
        if self.role_manager.get_user_role(role_name) is None:
            raise InvalidArgumentError(f'User role "{role_name}" does not exist!', role=role_name)
        user = UserIdentity(
            username=key,
            display_name=display_name,
            role_name=role_name,
            locked=locked,
            password_expired=password_expired,
        )
        record = self._hash_record(password)
        with self._lock:
            if key in self._users:
                raise InvalidArgumentError(f'User "{key}" already exists!', username=key)
            self._users[key] = user
            self._passwords[key] = record
        return user

    def _hash_record(self, password: str) -> Dict[str, object]:
        salt = secrets.token_bytes(16)
        digest = _scrypt_hash(password, salt, n=self.kdf_n)
        return {"salt": salt.hex(), "digest": digest.hex(), "kdf": {"name": "scrypt", "n": self.kdf_n, "r": 8, "p": 1}}

    def remove_user(self, username: str) -> bool:
        key = self._key(username)
        with self._lock:
            self._passwords.pop(key, None)
            return self._users.pop(key, None) is not None

    def _update(self, username: str, **changes: object) -> UserIdentity:
        key = self._key(username)
        with self._lock:
            user = self._users.get(key)
            if user is None:
                raise KeyError(key)
            updated = user.model_copy(update=changes)
            self._users[key] = updated
            return updated

    def set_user_role(self, username: str, role_name: str) -> UserIdentity:
        if self.role_manager.get_user_role(role_name) is None:
            raise InvalidArgumentError(f'User role "{role_name}" does not exist!', role=role_name)
        return self._update(username, role_name=role_name)

    def set_locked(self, username: str, locked: bool) -> UserIdentity:
        return self._update(username, locked=bool(locked))

    def set_password_expired(self, username: str, expired: bool) -> UserIdentity:
        return self._update(username, password_expired=bool(expired))

    def set_password(self, username: str, password: str) -> None:
        key = self._key(username)
        record = self._hash_record(password)
        with self._lock:
            if key not in self._users:
                raise KeyError(key)
            self._passwords[key] = record

    # ---- UserStore ----
    def user_exists(self, username: str) -> bool:
        return self._key(username) in self._users

    def get_user(self, username: str) -> Optional[UserIdentity]:
        return self._users.get(self._key(username))

    def get_user_role(self, username: str) -> UserRole:
        user = self._users.get(self._key(username))
        if user is None:
            raise KeyError(self._key(username))
        role = self.role_manager.get_user_role(user.role_name)
        if role is None:
            raise KeyError(user.role_name)
        return role

    def check_password_matches(self, username: str, password: str) -> bool:
        record = self._passwords.get(self._key(username))
        if not record or password is None:
            return False
        salt = bytes.fromhex(str(record["salt"]))
        expected = bytes.fromhex(str(record["digest"]))
        kdf = record.get("kdf") or {}
        digest = _scrypt_hash(password, salt, n=int(kdf.get("n", 2**14)), r=int(kdf.get("r", 8)), p=int(kdf.get("p", 1)))
        return secrets.compare_digest(digest, expected)
