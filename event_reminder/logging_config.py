from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
AUDIT_FORMAT = "%(asctime)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_BYTES = 10 * 1024 * 1024
ERROR_MAX_BYTES = 5 * 1024 * 1024


class SizeAndTimeRotatingFileHandler(TimedRotatingFileHandler):
    """Midnight rotation that also rolls a file over once it would pass ``max_bytes``."""

    def __init__(self, filename: Path, backup_count: int, max_bytes: int = MAX_BYTES) -> None:
        filename.parent.mkdir(parents=True, exist_ok=True)
        self.max_bytes = max_bytes
        super().__init__(filename, when="midnight", interval=1, backupCount=backup_count, encoding="utf-8")

    def shouldRollover(self, record: logging.LogRecord) -> int:  # noqa: N802 - signature from base class
        if super().shouldRollover(record):
            return 1
        if self.max_bytes <= 0:
            return 0
        if self.stream is None:
            self.stream = self._open()
        pending = len(f"{self.format(record)}{self.terminator}".encode("utf-8"))
        return int(self.stream.tell() + pending > self.max_bytes)


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logging(base_dir: Path, *, console_level: int = logging.INFO) -> None:
    base_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    app_log = SizeAndTimeRotatingFileHandler(base_dir / "app" / "app.log", backup_count=14)
    app_log.setFormatter(formatter)
    err_log = SizeAndTimeRotatingFileHandler(base_dir / "error" / "error.log", backup_count=30, max_bytes=ERROR_MAX_BYTES)
    err_log.setFormatter(formatter)
    err_log.setLevel(logging.WARNING)
    audit_log = SizeAndTimeRotatingFileHandler(base_dir / "audit" / "audit.log", backup_count=14)
    audit_log.setFormatter(logging.Formatter(AUDIT_FORMAT, datefmt=DATE_FORMAT))

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(formatter)

    root_logger = logging.getLogger()
    _reset_handlers(root_logger)
    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(console)

    app_logger = logging.getLogger("event_reminder")
    _reset_handlers(app_logger)
    app_logger.setLevel(logging.INFO)
    app_logger.addHandler(app_log)
    app_logger.addHandler(err_log)

    audit_logger = logging.getLogger("event_reminder.audit")
    _reset_handlers(audit_logger)
    audit_logger.setLevel(logging.INFO)
    audit_logger.propagate = False
    audit_logger.addHandler(audit_log)

    logging.getLogger("apscheduler").setLevel(logging.WARNING)
