from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import ValidationError

from warden.core.config.models import WardenConfig
from warden.core.errors import ConfigError


@dataclass(frozen=True)
class ReadResult:
    ok: bool
    data: Dict[str, Any]
    error: Optional[str] = None


def read_json_file(path: str) -> ReadResult:
    if not os.path.exists(path):
        return ReadResult(ok=False, data={}, error="missing")
    try:
        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)
        if not isinstance(obj, dict):
            return ReadResult(ok=False, data={}, error="not_object")
        return ReadResult(ok=True, data=obj)
    except json.JSONDecodeError as e:
        return ReadResult(ok=False, data={}, error=f"corrupt_json:{e}")
    except OSError as e:
        return ReadResult(ok=False, data={}, error=str(e))


def atomic_write_json(path: str, data: Dict[str, Any]) -> None:
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".tmp_", suffix=".json", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, sort_keys=True)
            f.write("\n")
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)


def load_config(path: Optional[str] = None) -> WardenConfig:
    """
    Load and validate the config file.

    A missing file yields defaults; a corrupt or invalid file is a ConfigError
    (fail closed, nothing is silently repaired).
    """
    if not path:
        return WardenConfig()
    rr = read_json_file(path)
    if not rr.ok:
        if rr.error == "missing":
            return WardenConfig()
        raise ConfigError(f"Unable to read config: {rr.error}", path=path)
    try:
        return WardenConfig.model_validate(rr.data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config: {e.error_count()} error(s)", path=path, errors=e.errors(include_url=False)) from e


def save_config(path: str, cfg: WardenConfig) -> None:
    atomic_write_json(path, cfg.model_dump())
