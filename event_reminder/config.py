"""Runtime configuration for the reminder engine."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


_logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Raised when application configuration is invalid."""


def _read_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        value = default
    else:
        try:
            value = int(raw)
        except ValueError as exc:
            raise ConfigError(f"{name} must be an integer") from exc
    if min_value is not None and value < min_value:
        raise ConfigError(f"{name} must be >= {min_value}")
    return value


def _read_float(name: str, default: float, *, min_value: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        value = default
    else:
        try:
            value = float(raw)
        except ValueError as exc:
            raise ConfigError(f"{name} must be a number") from exc
    if min_value is not None and value < min_value:
        raise ConfigError(f"{name} must be >= {min_value}")
    return value


def _read_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


@dataclass(slots=True)
class StorageConfig:
    """Where and how the event collection is persisted."""

    data_dir: Path
    backend: str = "json"
    sqlite_path: Path | None = None
    retention_days: int = 30

    @property
    def db_path(self) -> Path:
        return self.sqlite_path or self.data_dir / "events.db"


@dataclass(slots=True)
class ReminderConfig:
    """Polling period and alert window of the scheduler."""

    tick_seconds: float = 10.0
    window_seconds: float = 60.0
    timezone: str | None = None


@dataclass(slots=True)
class AlertConfig:
    """System-level side channels raised with each reminder."""

    notifications: bool = True
    sound_file: Path | None = None
    sound_seconds: float = 3.0


@dataclass(slots=True)
class SyncConfig:
    """Cross-instance store watcher."""

    poll_seconds: float = 2.0


@dataclass(slots=True)
class Config:
    """Container for application configuration."""

    storage: StorageConfig
    logs_dir: Path
    reminder: ReminderConfig = field(default_factory=ReminderConfig)
    alerts: AlertConfig = field(default_factory=AlertConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)


def _load_timezone(name: str | None) -> str | None:
    if not name:
        return None
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        _logger.warning("Unknown timezone %s, falling back to system local time", name)
        return None
    return name


def _validate_config(config: Config) -> None:
    if config.storage.backend not in {"json", "sqlite"}:
        raise ConfigError("EVENT_REMINDER_BACKEND must be 'json' or 'sqlite'")
    if config.storage.data_dir.exists() and not config.storage.data_dir.is_dir():
        raise ConfigError("EVENT_REMINDER_DATA_DIR must point to a directory")
    if config.reminder.window_seconds < config.reminder.tick_seconds:
        raise ConfigError(
            "EVENT_REMINDER_WINDOW_SECONDS must not be shorter than EVENT_REMINDER_TICK_SECONDS"
        )
    sound = config.alerts.sound_file
    if sound is not None and sound.exists() and sound.is_dir():
        raise ConfigError("EVENT_REMINDER_SOUND_FILE must point to a file")


def _log_summary(config: Config) -> None:
    _logger.info(
        "Configuration loaded: backend=%s, data=%s, timezone=%s, tick=%.0fs, window=±%.0fs, retention=%sd, sync=%.1fs, notifications=%s, sound=%s",
        config.storage.backend,
        config.storage.db_path if config.storage.backend == "sqlite" else config.storage.data_dir,
        config.reminder.timezone or "local",
        config.reminder.tick_seconds,
        config.reminder.window_seconds,
        config.storage.retention_days,
        config.sync.poll_seconds,
        "on" if config.alerts.notifications else "off",
        config.alerts.sound_file or "none",
    )


def load_config() -> Config:
    """Load configuration from environment variables."""

    base_dir = Path(os.getenv("EVENT_REMINDER_BASE_DIR") or Path.cwd()).expanduser()
    data_dir = Path(os.getenv("EVENT_REMINDER_DATA_DIR") or base_dir / "data").expanduser()
    logs_dir = Path(os.getenv("EVENT_REMINDER_LOG_DIR") or base_dir / "logs").expanduser()
    db_raw = os.getenv("EVENT_REMINDER_DB_PATH")
    sound_raw = os.getenv("EVENT_REMINDER_SOUND_FILE")

    config = Config(
        storage=StorageConfig(
            data_dir=data_dir,
            backend=(os.getenv("EVENT_REMINDER_BACKEND") or "json").strip().lower(),
            sqlite_path=Path(db_raw).expanduser() if db_raw else None,
            retention_days=_read_int("EVENT_REMINDER_RETENTION_DAYS", 30, min_value=1),
        ),
        logs_dir=logs_dir,
        reminder=ReminderConfig(
            tick_seconds=_read_float("EVENT_REMINDER_TICK_SECONDS", 10.0, min_value=0.1),
            window_seconds=_read_float("EVENT_REMINDER_WINDOW_SECONDS", 60.0, min_value=0.0),
            timezone=_load_timezone(os.getenv("EVENT_REMINDER_TIMEZONE")),
        ),
        alerts=AlertConfig(
            notifications=_read_bool("EVENT_REMINDER_NOTIFICATIONS", True),
            sound_file=Path(sound_raw).expanduser() if sound_raw else None,
            sound_seconds=_read_float("EVENT_REMINDER_SOUND_SECONDS", 3.0, min_value=0.1),
        ),
        sync=SyncConfig(
            poll_seconds=_read_float("EVENT_REMINDER_SYNC_SECONDS", 2.0, min_value=0.1),
        ),
    )

    _validate_config(config)
    _log_summary(config)

    return config
