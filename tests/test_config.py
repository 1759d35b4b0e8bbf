"""
Tests for client configuration loading.
"""

from pathlib import Path

import pytest

from cadence import config as config_module
from cadence.config import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_READ_LIMIT,
    ClientConfig,
    get_client_config,
    load_client_config,
    reload_client_config,
)


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "client.toml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadClientConfig:
    """Tests for load_client_config()."""

    def test_bundled_defaults(self) -> None:
        config = load_client_config()

        assert config.host == DEFAULT_HOST
        assert config.port == DEFAULT_PORT
        assert config.read_limit == DEFAULT_READ_LIMIT
        assert config.reconnect_attempts == 3
        assert config.reconnect_delay == 1.0

    def test_custom_file(self, tmp_path: Path) -> None:
        path = write_config(
            tmp_path,
            """
[connection]
host = "music.local"
port = 6601
read_limit = 4096

[reconnect]
attempts = 5
delay = 0.5
""",
        )

        config = load_client_config(path)

        assert config == ClientConfig(
            host="music.local",
            port=6601,
            read_limit=4096,
            reconnect_attempts=5,
            reconnect_delay=0.5,
        )
        assert config.address == "music.local:6601"

    def test_missing_sections_use_defaults(self, tmp_path: Path) -> None:
        config = load_client_config(write_config(tmp_path, ""))
        assert config == ClientConfig()

    def test_integer_delay_becomes_float(self, tmp_path: Path) -> None:
        config = load_client_config(write_config(tmp_path, "[reconnect]\ndelay = 2\n"))

        assert config.reconnect_delay == 2.0
        assert isinstance(config.reconnect_delay, float)

    @pytest.mark.parametrize(
        "text",
        [
            '[connection]\nport = "6600"\n',
            "[connection]\nport = 0\n",
            "[connection]\nport = true\n",
        ],
    )
    def test_invalid_port_falls_back(self, tmp_path: Path, text: str) -> None:
        config = load_client_config(write_config(tmp_path, text))
        assert config.port == DEFAULT_PORT

    def test_invalid_host_falls_back(self, tmp_path: Path) -> None:
        config = load_client_config(write_config(tmp_path, '[connection]\nhost = ""\n'))
        assert config.host == DEFAULT_HOST

    def test_negative_attempts_fall_back(self, tmp_path: Path) -> None:
        config = load_client_config(write_config(tmp_path, "[reconnect]\nattempts = -1\n"))
        assert config.reconnect_attempts == 3


class TestSingleton:
    """Tests for the lazily loaded global config."""

    def test_get_is_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config_module, "_client_config", None)

        first = get_client_config()
        assert get_client_config() is first

    def test_reload(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config_module, "_client_config", None)
        path = write_config(tmp_path, "[connection]\nport = 7000\n")

        reloaded = reload_client_config(path)

        assert reloaded.port == 7000
        assert get_client_config() is reloaded
