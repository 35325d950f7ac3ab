from __future__ import annotations

from pathlib import Path

import pytest

from flicctl.core.config import ClientConfig, default_config_path, load_config
from flicctl.core.errors import ConfigError, ConfigValidationError
from flicctl.core.model import LatencyMode


def _write_config(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_defaults_when_no_config_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    config = load_config()
    assert config == ClientConfig()
    assert config.port == 5551
    assert config.auto_disconnect_time == 0x1FF


def test_default_path_follows_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    assert default_config_path() == tmp_path / "cfg" / "flicctl" / "config.yaml"


def test_user_config_overrides_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    _write_config(
        tmp_path / "cfg" / "flicctl" / "config.yaml",
        """
host: hub.local
port: 5552
latency_mode: low
auto_disconnect_time: 60
request_info_on_connect: false
""",
    )

    config = load_config()

    assert config.host == "hub.local"
    assert config.port == 5552
    assert config.latency_mode is LatencyMode.LOW
    assert config.auto_disconnect_time == 60
    assert config.request_info_on_connect is False
    assert config.max_record_size == 0xFFFF


def test_empty_file_keeps_defaults(tmp_path: Path) -> None:
    path = _write_config(tmp_path / "config.yaml", "")
    assert load_config(path) == ClientConfig()


def test_explicit_missing_path_is_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yaml")


@pytest.mark.parametrize(
    "content",
    [
        "port: 70000\n",
        "latency_mode: turbo\n",
        "unknown_key: 1\n",
        "max_record_size: 0\n",
        "connect_timeout_s: 0\n",
        "- just\n- a list\n",
        "host: [unterminated\n",
    ],
)
def test_invalid_config_rejected(tmp_path: Path, content: str) -> None:
    path = _write_config(tmp_path / "config.yaml", content)
    with pytest.raises(ConfigValidationError):
        load_config(path)


def test_duplicate_keys_rejected(tmp_path: Path) -> None:
    path = _write_config(tmp_path / "config.yaml", "port: 5551\nport: 5552\n")
    with pytest.raises(ConfigValidationError, match="Duplicate key"):
        load_config(path)


def test_with_overrides_ignores_none() -> None:
    config = ClientConfig().with_overrides(host="10.0.0.2", port=None)
    assert config.host == "10.0.0.2"
    assert config.port == 5551
