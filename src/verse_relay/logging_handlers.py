"""Logging setup shared by the relay service and the player."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class DateStampedFileHandler(logging.FileHandler):
    """File handler writing to ``<directory>/<YYYY-MM-DD>/<prefix>_<time>.log``."""

    def __init__(
        self,
        directory: str | Path,
        *,
        prefix: str = "relay",
        encoding: str | None = "utf-8",
        mode: str = "a",
        delay: bool = False,
        current_time: datetime | None = None,
    ) -> None:
        timestamp = (current_time or datetime.now(timezone.utc)).astimezone(timezone.utc)
        date_folder = timestamp.strftime("%Y-%m-%d")
        file_name = f"{prefix}_{timestamp.strftime('%Y-%m-%d_%H-%M-%S')}_UTC.log"
        log_path = (Path(directory) / date_folder / file_name).resolve()

        log_path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(log_path, mode=mode, encoding=encoding, delay=delay)


def cleanup_old_logs(
    directory: str | Path,
    retention_hours: int,
    *,
    now: datetime | None = None,
    logger: logging.Logger | None = None,
) -> int:
    """Delete ``*.log`` files older than *retention_hours* (0 disables).

    Empty date folders are removed as well. Returns the number of files deleted.
    """
    if retention_hours <= 0:
        return 0

    dir_path = Path(directory).resolve()
    if not dir_path.exists():
        return 0

    cutoff = (now or datetime.now(timezone.utc)) - timedelta(hours=retention_hours)
    deleted = 0

    for log_file in dir_path.rglob("*.log"):
        try:
            mtime = datetime.fromtimestamp(log_file.stat().st_mtime, tz=timezone.utc)
            if mtime < cutoff:
                log_file.unlink()
                deleted += 1
        except OSError as exc:
            if logger:
                logger.warning(f"Failed to delete {log_file}: {exc}")

    for date_dir in dir_path.iterdir():
        if date_dir.is_dir() and not any(date_dir.iterdir()):
            try:
                date_dir.rmdir()
            except OSError:
                pass  # raced with a new log file

    if logger and deleted:
        logger.info(f"Log cleanup complete: {deleted} file(s) deleted")
    return deleted


def configure_logging(prefix: str = "relay") -> None:
    """Configure the root logger from LOG_LEVEL, LOG_DIR and LOG_RETENTION_HOURS."""
    # Load .env first so LOG_* variables are visible
    load_dotenv()

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers: list[logging.Handler] = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    log_dir = os.getenv("LOG_DIR")
    if log_dir:
        file_handler = DateStampedFileHandler(log_dir, prefix=prefix)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    logging.getLogger("verse_relay").setLevel(log_level)
    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(log_level)
    logging.getLogger("uvicorn.error").setLevel(log_level)

    # httpx logs every request at INFO; keep it for DEBUG sessions only
    if log_level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    if log_dir:
        try:
            retention_hours = int(os.getenv("LOG_RETENTION_HOURS", "48"))
        except ValueError:
            retention_hours = 48
        cleanup_old_logs(log_dir, retention_hours, logger=logging.getLogger(__name__))


__all__ = ["DateStampedFileHandler", "cleanup_old_logs", "configure_logging"]
