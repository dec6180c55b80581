"""Configuration management for InoSync."""

import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

# Keys written by the Obsidian plugin's data.json
CAMEL_CASE_KEYS = {
    "userId": "user_id",
    "targetFolder": "target_folder",
    "vaultPath": "vault_path",
    "requestTimeout": "request_timeout",
    "logLevel": "log_level",
}

TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class TagConfig:
    """A tag to sync and the vault folder its notes go to."""

    name: str
    folder: str = ""  # empty uses Settings.target_folder


@dataclass
class Settings:
    """User settings for a sync run."""

    user_id: str = ""
    tags: list[TagConfig] = field(default_factory=list)
    target_folder: str = ""
    template: str = "default"
    vault_path: str = "."
    offline: bool = False
    request_timeout: int = 30
    log_level: str = "INFO"

    def folder_for(self, tag: TagConfig) -> str:
        """Destination folder for a tag, relative to the vault root."""
        return tag.folder.strip() or self.target_folder

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        """Build settings from a (possibly partial) mapping merged over defaults.

        Unknown keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            key = CAMEL_CASE_KEYS.get(key, key)
            if key in known:
                values[key] = value

        values["tags"] = [_parse_tag(tag) for tag in values.get("tags") or []]
        return cls(**values)


def _parse_tag(raw: Any) -> TagConfig:
    if isinstance(raw, TagConfig):
        return raw
    if isinstance(raw, str):
        return TagConfig(name=raw)
    if isinstance(raw, dict) and raw.get("name"):
        return TagConfig(name=str(raw["name"]), folder=str(raw.get("folder") or ""))
    raise ValueError(f"Invalid tag entry: {raw!r}")


class Config:
    """Main configuration manager."""

    # Default settings file path
    SETTINGS_FILE = "inosync.json"

    def __init__(self, settings_file: str | None = None):
        """Initialize configuration from environment variables."""
        self.settings_file = Path(
            settings_file or os.getenv("INOSYNC_SETTINGS_FILE", self.SETTINGS_FILE)
        )
        self.user_id = os.getenv("INOSYNC_USER_ID", "")
        self.vault_path = os.getenv("INOSYNC_VAULT_PATH", "")
        self.offline = os.getenv("INOSYNC_OFFLINE", "")
        self.log_level = os.getenv("LOG_LEVEL", "")

    def load_settings(self) -> Settings:
        """Load settings from the JSON file, then apply environment overrides.

        A missing file yields the defaults.
        """
        data: dict[str, Any] = {}
        if self.settings_file.exists():
            try:
                with open(self.settings_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in settings file: {e}")

            if not isinstance(data, dict):
                raise ValueError("Settings file must contain a JSON object")

        settings = Settings.from_dict(data)

        if self.user_id:
            settings.user_id = self.user_id
        if self.vault_path:
            settings.vault_path = self.vault_path
        if self.offline:
            settings.offline = self.offline.strip().lower() in TRUTHY
        if self.log_level:
            settings.log_level = self.log_level

        return settings

    def save_settings(self, settings: Settings) -> None:
        """Write settings back to the JSON file."""
        self.settings_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.settings_file, "w", encoding="utf-8") as f:
            json.dump(settings.to_dict(), f, indent=2, ensure_ascii=False)

    def reset(self) -> Settings:
        """Restore and persist the default settings."""
        settings = Settings()
        self.save_settings(settings)
        return settings
