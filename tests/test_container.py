import os
from pathlib import Path
from types import SimpleNamespace

from diagbus.container import (
    AppConfig,
    DiagnosticsConfig,
    get_config,
    is_diagnostics_enabled,
    reset_config,
)


def test_gate_reads_app_config():
    enabled = AppConfig(base_dir=Path("."), diagnostics=DiagnosticsConfig(enabled=True))
    disabled = AppConfig(base_dir=Path("."))
    assert is_diagnostics_enabled(enabled)
    assert not is_diagnostics_enabled(disabled)


def test_gate_reads_mappings():
    assert is_diagnostics_enabled({"diagnostics": {"enabled": True}})
    assert not is_diagnostics_enabled({"diagnostics": {"enabled": "true"}})
    assert not is_diagnostics_enabled({"diagnostics": {}})
    assert not is_diagnostics_enabled({})


def test_gate_never_raises():
    class Exploding:
        @property
        def diagnostics(self):
            raise RuntimeError("broken config")

    assert not is_diagnostics_enabled(None)
    assert not is_diagnostics_enabled()
    assert not is_diagnostics_enabled(42)
    assert not is_diagnostics_enabled(Exploding())
    assert not is_diagnostics_enabled(SimpleNamespace(diagnostics=None))
    assert is_diagnostics_enabled(SimpleNamespace(diagnostics=SimpleNamespace(enabled=True)))


def test_from_env_defaults(tmp_path, monkeypatch):
    for key in list(os.environ):
        if key.startswith("DIAGBUS_"):
            monkeypatch.delenv(key)

    config = AppConfig.from_env(tmp_path)
    assert config.base_dir == tmp_path
    assert config.diagnostics.enabled is False
    assert config.log_level == "INFO"
    assert config.log_dir is None


def test_from_env_file_and_overrides(tmp_path, monkeypatch):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "diagnostics.env").write_text(
        "# diagnostics\n"
        'export DIAGBUS_DIAGNOSTICS="true"\n'
        "DIAGBUS_DIAGNOSTICS_FLAGS=webhooks, usage\n"
        "DIAGBUS_LOG_LEVEL=warning\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("DIAGBUS_LOG_LEVEL", "debug")
    monkeypatch.delenv("DIAGBUS_DIAGNOSTICS", raising=False)
    monkeypatch.delenv("DIAGBUS_DIAGNOSTICS_FLAGS", raising=False)

    config = AppConfig.from_env(tmp_path)

    assert is_diagnostics_enabled(config)
    assert config.diagnostics.flags == ("webhooks", "usage")
    assert config.log_level == "DEBUG"


def test_env_can_disable_file_setting(tmp_path, monkeypatch):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "diagnostics.env").write_text("DIAGBUS_DIAGNOSTICS=1\n")
    monkeypatch.setenv("DIAGBUS_DIAGNOSTICS", "0")

    assert not is_diagnostics_enabled(AppConfig.from_env(tmp_path))


def test_global_config_cached(tmp_path, monkeypatch):
    monkeypatch.setenv("DIAGBUS_BASE_DIR", str(tmp_path))
    first = get_config()
    assert get_config() is first
    assert first.base_dir == tmp_path
    reset_config()
    assert get_config() is not first


def test_from_env_events_log_level(tmp_path, monkeypatch):
    monkeypatch.setenv("DIAGBUS_EVENTS_LOG_LEVEL", "warning")

    assert AppConfig.from_env(tmp_path).events_log_level == "WARNING"
