import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from bridgeconf.audit import AuditLogger, read_events
from bridgeconf.config import load_settings

from .conftest import make_settings


def test_load_settings_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("BRIDGECONF_STORAGE_PATH", str(tmp_path))
    monkeypatch.setenv("BRIDGECONF_HOST_VERSION", "1.8.4")
    monkeypatch.delenv("BRIDGECONF_CONFIG_PATH", raising=False)
    monkeypatch.delenv("BRIDGECONF_PLUGINS_PATH", raising=False)

    settings = load_settings()

    assert settings.storage_path == tmp_path
    assert settings.config_path == tmp_path / "config.json"
    assert settings.backup_path == tmp_path / "backups" / "config-backups"
    assert settings.plugins_path == tmp_path / "node_modules"
    assert settings.child_bridge_env_allowed is True

def test_explicit_storage_wins(tmp_path, monkeypatch):
    monkeypatch.setenv("BRIDGECONF_STORAGE_PATH", "/nowhere")
    assert load_settings(tmp_path).storage_path == tmp_path

@pytest.mark.parametrize("version,allowed", [("1.7.9", False), ("1.8.0", True), ("2.0.0-beta.1", True), ("1.8.0-beta.3", False)])
def test_child_bridge_env_gate(tmp_path, version, allowed):
    assert make_settings(tmp_path, host_version=version).child_bridge_env_allowed is allowed

def test_invalid_host_version(tmp_path):
    with pytest.raises(ValidationError):
        make_settings(tmp_path, host_version="not a version")

def test_audit_log_masks_secrets(tmp_path):
    log_file = tmp_path / "events.jsonl"
    AuditLogger(log_file).log("config_saved", pin="031-45-154", path="/x")

    events = read_events(log_file)
    assert events[0]["details"] == {"pin": "*****", "path": "/x"}
    assert events[0]["level"] == "info"

def test_audit_log_warning_callback(tmp_path):
    seen = []
    logger = AuditLogger(tmp_path / "events.jsonl", on_warning=seen.append)

    logger.warning("config_backup_failed", message="no space")
    logger.log("config_saved")

    assert seen == ["no space"]

def test_read_events_skips_corrupt_lines(tmp_path):
    log_file = tmp_path / "events.jsonl"
    log_file.write_text(json.dumps({"event": "a"}) + "\n{broken\n" + json.dumps({"event": "b"}) + "\n")
    assert [e["event"] for e in read_events(log_file)] == ["a", "b"]
