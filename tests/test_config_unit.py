"""Unit tests for configuration management."""

import json
import os
from unittest.mock import patch

import pytest

from inosync.config import Config, Settings, TagConfig


class TestConfigUnit:
    """Unit tests for Config and Settings."""

    def test_missing_file_returns_defaults(self, tmp_path):
        with patch.dict(os.environ, {}, clear=True):
            settings = Config(str(tmp_path / "missing.json")).load_settings()

        assert settings == Settings()
        assert settings.template == "default"
        assert settings.tags == []

    def test_partial_file_is_merged_over_defaults(self, tmp_path):
        path = tmp_path / "inosync.json"
        path.write_text(
            json.dumps(
                {
                    "user_id": "42",
                    "tags": [{"name": "Tech", "folder": "Feeds/Tech"}, "News"],
                    "unknown_key": True,
                }
            ),
            encoding="utf-8",
        )

        with patch.dict(os.environ, {}, clear=True):
            settings = Config(str(path)).load_settings()

        assert settings.user_id == "42"
        assert settings.tags == [
            TagConfig(name="Tech", folder="Feeds/Tech"),
            TagConfig(name="News"),
        ]
        assert settings.target_folder == ""
        assert settings.request_timeout == 30

    def test_plugin_camel_case_keys(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(
            json.dumps(
                {
                    "userId": "1005",
                    "tags": [{"name": "AI", "folder": ""}],
                    "targetFolder": "Inoreader",
                    "syncOnStartup": True,
                    "template": "# {{title}}",
                }
            ),
            encoding="utf-8",
        )

        with patch.dict(os.environ, {}, clear=True):
            settings = Config(str(path)).load_settings()

        assert settings.user_id == "1005"
        assert settings.target_folder == "Inoreader"
        assert settings.template == "# {{title}}"
        assert settings.folder_for(settings.tags[0]) == "Inoreader"

    def test_environment_overrides(self, tmp_path):
        path = tmp_path / "inosync.json"
        path.write_text(json.dumps({"user_id": "1", "vault_path": "a"}), encoding="utf-8")
        env = {
            "INOSYNC_SETTINGS_FILE": str(path),
            "INOSYNC_USER_ID": "99",
            "INOSYNC_VAULT_PATH": "/vault",
            "INOSYNC_OFFLINE": "true",
            "LOG_LEVEL": "DEBUG",
        }

        with patch.dict(os.environ, env, clear=True):
            settings = Config().load_settings()

        assert settings.user_id == "99"
        assert settings.vault_path == "/vault"
        assert settings.offline is True
        assert settings.log_level == "DEBUG"

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "inosync.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid JSON"):
            Config(str(path)).load_settings()

    def test_non_object_json_raises(self, tmp_path):
        path = tmp_path / "inosync.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(ValueError, match="JSON object"):
            Config(str(path)).load_settings()

    def test_invalid_tag_entry_raises(self):
        with pytest.raises(ValueError, match="Invalid tag entry"):
            Settings.from_dict({"tags": [{"folder": "x"}]})

    def test_save_and_reset(self, tmp_path):
        config = Config(str(tmp_path / "nested" / "inosync.json"))
        settings = Settings(user_id="7", tags=[TagConfig("Tech", "T")])

        config.save_settings(settings)
        with patch.dict(os.environ, {}, clear=True):
            assert Config(str(config.settings_file)).load_settings() == settings

        assert config.reset() == Settings()
        with patch.dict(os.environ, {}, clear=True):
            assert Config(str(config.settings_file)).load_settings() == Settings()

    def test_folder_for_prefers_tag_folder(self):
        settings = Settings(target_folder="Inbox")

        assert settings.folder_for(TagConfig("a", "  Custom ")) == "Custom"
        assert settings.folder_for(TagConfig("b", "   ")) == "Inbox"
