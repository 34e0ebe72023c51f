"""Settings configuration for the file explorer."""

import os
from dataclasses import dataclass


def _env_bool(name: str, default: str) -> bool:
    value = os.getenv(name, default).strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean, got: {value}")


def _env_int(name: str, default: str) -> int:
    value = os.getenv(name, default)
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {value}")


def _env_choice(name: str, default: str, choices: tuple) -> str:
    value = os.getenv(name, default).strip().lower()
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}, got: {value}")
    return value


THEMES = ("default", "dark", "light")
SORT_KEYS = ("name", "size", "mtime")


@dataclass
class DisplaySettings:
    """Listing and colour settings."""
    show_hidden: bool = False
    sort_by: str = "name"  # name, size, mtime
    directories_first: bool = True
    theme: str = "default"  # default, dark, light
    max_recent: int = 10

    @classmethod
    def from_env(cls) -> "DisplaySettings":
        """Load display settings from environment variables."""
        max_recent = _env_int("EXPLORER_MAX_RECENT", "10")
        if max_recent < 1:
            raise ValueError(f"EXPLORER_MAX_RECENT must be positive, got: {max_recent}")
        return cls(
            show_hidden=_env_bool("EXPLORER_SHOW_HIDDEN", "false"),
            sort_by=_env_choice("EXPLORER_SORT_BY", "name", SORT_KEYS),
            directories_first=_env_bool("EXPLORER_DIRS_FIRST", "true"),
            theme=_env_choice("EXPLORER_THEME", "default", THEMES),
            max_recent=max_recent,
        )


@dataclass
class ArchiveSettings:
    """External zip/unzip tools."""
    zip_bin: str = "zip"
    unzip_bin: str = "unzip"
    timeout: int = 300

    @classmethod
    def from_env(cls) -> "ArchiveSettings":
        """Load archive settings from environment variables."""
        return cls(
            zip_bin=os.getenv("EXPLORER_ZIP_BIN", "zip"),
            unzip_bin=os.getenv("EXPLORER_UNZIP_BIN", "unzip"),
            timeout=_env_int("EXPLORER_ARCHIVE_TIMEOUT", "300"),
        )


@dataclass
class ApiSettings:
    """HTTP API settings."""
    root: str = "."

    @classmethod
    def from_env(cls) -> "ApiSettings":
        """Load API settings from environment variables."""
        return cls(
            root=os.getenv("EXPLORER_API_ROOT", os.getcwd()),
        )


@dataclass
class LoggingSettings:
    """Logging configuration."""
    level: str = "INFO"

    @classmethod
    def from_env(cls) -> "LoggingSettings":
        """Load logging settings from environment variables."""
        return cls(
            level=_env_choice(
                "EXPLORER_LOG_LEVEL", "INFO", ("debug", "info", "warning", "error", "critical")
            ).upper(),
        )


@dataclass
class Settings:
    """Main settings class combining all configuration."""
    display: DisplaySettings
    archive: ArchiveSettings
    api: ApiSettings
    logging: LoggingSettings

    @classmethod
    def from_env(cls) -> "Settings":
        """Load all settings from environment variables."""
        return cls(
            display=DisplaySettings.from_env(),
            archive=ArchiveSettings.from_env(),
            api=ApiSettings.from_env(),
            logging=LoggingSettings.from_env(),
        )


# Global settings instance
settings = Settings.from_env()
