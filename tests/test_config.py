from __future__ import annotations

import json

import pytest

from warden.core.config.io import load_config, read_json_file, save_config
from warden.core.config.models import LoginErrorMessages, SessionConfig, WardenConfig
from warden.core.errors import ConfigError


def test_defaults_without_a_file(tmp_path):
    assert load_config(None) == WardenConfig()
    assert load_config(str(tmp_path / "absent.json")) == WardenConfig()
    cfg = WardenConfig()
    assert cfg.session.max_sessions == -1
    assert cfg.session.retry_login_on_failure is True
    assert cfg.audit.enabled is False


def test_save_then_load(tmp_path):
    path = str(tmp_path / "cfg" / "warden.json")
    cfg = WardenConfig(session=SessionConfig(max_sessions=3, program_name="Acme"))
    save_config(path, cfg)
    assert load_config(path) == cfg
    raw = json.loads((tmp_path / "cfg" / "warden.json").read_text(encoding="utf-8"))
    assert raw["session"]["max_sessions"] == 3
    assert not [p for p in (tmp_path / "cfg").iterdir() if p.name.startswith(".tmp_")]


def test_corrupt_json_fails_closed(tmp_path):
    p = tmp_path / "bad.json"
    p.write_text("{not json", encoding="utf-8")
    assert read_json_file(str(p)).error.startswith("corrupt_json:")
    with pytest.raises(ConfigError):
        load_config(str(p))


def test_non_object_is_rejected(tmp_path):
    p = tmp_path / "list.json"
    p.write_text("[1, 2]", encoding="utf-8")
    assert read_json_file(str(p)).error == "not_object"
    with pytest.raises(ConfigError):
        load_config(str(p))


def test_unknown_fields_are_rejected(tmp_path):
    p = tmp_path / "extra.json"
    p.write_text(json.dumps({"session": {"max_sessions": 1, "bogus": True}}), encoding="utf-8")
    with pytest.raises(ConfigError) as ei:
        load_config(str(p))
    assert ei.value.context["errors"]


@pytest.mark.parametrize("session", [{"max_sessions": -2}, {"max_login_attempts": 0}, {"max_login_attempts": 101}])
def test_out_of_range_values_are_rejected(tmp_path, session):
    p = tmp_path / "range.json"
    p.write_text(json.dumps({"session": session}), encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(p))


def test_default_login_messages():
    empty = LoginErrorMessages()
    assert empty.incorrect_credentials == ""
    d = LoginErrorMessages.defaults()
    assert d.incorrect_credentials == "Invalid Username Or Password, Please Try Again!"
    assert all(getattr(d, f) for f in LoginErrorMessages.model_fields)
