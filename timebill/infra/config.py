"""
Settings for TimeBill.

Defaults live in the models, a `settings.yaml` holds the tracker preferences
(who is tracking, which zone dates are taken in, currency, reminder cadence),
and TIMEBILL_* environment variables override the application level values.
The CLI `config` command writes the YAML back through `update_preferences`.
"""

import os
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import yaml

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from timebill.domain.errors import InvalidInput
from timebill.domain.models import TrackerPreferences

SETTINGS_FILE = "settings.yaml"


def _platform_dir(kind: str) -> Path:
    """Per-user base directory for 'config' or 'data' files"""
    if os.name == 'nt':
        return Path(os.getenv('APPDATA'))
    if kind == 'config':
        return Path.home() / '.config'
    return Path.home() / '.local' / 'share'


def parse_timezone(name: str) -> Optional[ZoneInfo]:
    """IANA zone for `name`; empty means system local"""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidInput(f"Unknown timezone: {name}") from e


class Settings(BaseSettings):
    """
    Application settings. Precedence, lowest first: model defaults, the YAML
    preferences file, environment variables (TIMEBILL_DATA_DIR, ...).
    """
    model_config = SettingsConfigDict(
        env_prefix='TIMEBILL_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    app_name: str = "TimeBill"
    config_dir: Optional[Path] = None
    data_dir: Optional[Path] = None
    database_url: Optional[str] = None
    log_level: str = "INFO"

    preferences: TrackerPreferences = TrackerPreferences()

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        folder = self.app_name.lower()
        if self.config_dir is None:
            self.config_dir = _platform_dir('config') / folder
        if self.data_dir is None:
            self.data_dir = _platform_dir('data') / folder
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        source = self.preferences_file()
        if source.exists():
            self.preferences = self._read_preferences(source)

    def preferences_file(self) -> Path:
        """A workspace `config/settings.yaml` wins over the one in config_dir"""
        workspace = Path("config") / SETTINGS_FILE
        if workspace.exists():
            return workspace
        return self.config_dir / SETTINGS_FILE

    @staticmethod
    def _read_preferences(path: Path) -> TrackerPreferences:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        return TrackerPreferences(**data)

    def save_preferences(self) -> Path:
        """Write the current preferences to the user's settings file"""
        target = self.config_dir / SETTINGS_FILE
        with open(target, 'w', encoding='utf-8') as f:
            yaml.dump(self.preferences.model_dump(), f, default_flow_style=False)
        return target

    def update_preferences(self, **changes) -> TrackerPreferences:
        """
        Apply and persist preference changes; None values are left alone.

        Raises:
            InvalidInput: an unknown timezone or a value out of range
        """
        changes = {k: v for k, v in changes.items() if v is not None}
        if 'timezone' in changes:
            parse_timezone(changes['timezone'])
        try:
            updated = TrackerPreferences(**{**self.preferences.model_dump(), **changes})
        except ValidationError as e:
            raise InvalidInput(f"Invalid preference: {e.errors()[0]['msg']}") from e
        self.preferences = updated
        self.save_preferences()
        return updated

    def get_db_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{self.data_dir / 'timebill.db'}"

    def get_timezone(self) -> Optional[ZoneInfo]:
        """Zone used to turn timer start instants into entry dates; None = system local"""
        return parse_timezone(self.preferences.timezone)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from file"""
    global _settings
    _settings = Settings()
    return _settings
