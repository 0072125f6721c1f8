"""Tests for the base/local YAML configuration."""

from __future__ import annotations

import pytest
import yaml

from config_manager import ConfigManager


@pytest.fixture(autouse=True)
def clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("GEMINI_API_KEY", "API_KEY", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def write_yaml(path, data) -> None:
    path.write_text(yaml.dump(data))


class TestLoading:
    def test_defaults_when_missing(self, tmp_path) -> None:
        cfg = ConfigManager(str(tmp_path / "config.yaml"))

        assert cfg.get("text_model") == "gemini-2.5-flash"
        assert cfg.get("image_model") == "gemini-2.5-flash-image"
        assert cfg.get("location_placeholder_city") == "San Francisco, USA"

    def test_local_overrides_base(self, tmp_path) -> None:
        write_yaml(tmp_path / "config.yaml", {"trend_count": 4, "text_model": "base"})
        write_yaml(tmp_path / "config.local.yaml", {"text_model": "local"})

        cfg = ConfigManager(str(tmp_path / "config.yaml"))

        assert cfg.get("text_model") == "local"
        assert cfg.get("trend_count") == 4

    def test_env_api_key_wins(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        write_yaml(tmp_path / "config.yaml", {"gemini_api_key": "from-file"})
        monkeypatch.setenv("API_KEY", "from-env")

        cfg = ConfigManager(str(tmp_path / "config.yaml"))

        assert cfg.get("gemini_api_key") == "from-env"

    def test_broken_yaml_is_skipped(self, tmp_path) -> None:
        (tmp_path / "config.yaml").write_text("text_model: [unclosed")

        cfg = ConfigManager(str(tmp_path / "config.yaml"))

        assert cfg.get("text_model") == "gemini-2.5-flash"

    def test_font_paths(self, tmp_path) -> None:
        write_yaml(tmp_path / "config.yaml", {"bold_font_path": "/fonts/b.ttf"})

        cfg = ConfigManager(str(tmp_path / "config.yaml"))

        assert cfg.font_paths == {"regular": None, "bold": "/fonts/b.ttf"}


class TestSaving:
    def test_form_update_written_to_local(self, tmp_path) -> None:
        write_yaml(tmp_path / "config.yaml", {"text_model": "base"})
        cfg = ConfigManager(str(tmp_path / "config.yaml"))

        cfg.update_from_form({
            "text_model": "custom", "image_model": "", "trend_count": "6",
            "geocoding_enabled": "false", "unrelated": "x",
        })

        local = yaml.safe_load((tmp_path / "config.local.yaml").read_text())
        assert local == {"text_model": "custom", "trend_count": 6, "geocoding_enabled": False}
        assert cfg.get("text_model") == "custom"
        assert cfg.get("image_model") == "gemini-2.5-flash-image"

    def test_bad_number_dropped(self, tmp_path) -> None:
        cfg = ConfigManager(str(tmp_path / "config.yaml"))

        cfg.update_from_form({"trend_count": "many"})

        assert cfg.get("trend_count") == 4
