"""
Structured logging system for better log analysis and debugging.
Provides JSON-formatted logs with context and metadata.
"""

import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any


class StructuredLogger:
    """
    Logger that outputs both human-readable and machine-parseable logs.

    Usage:
        logger = StructuredLogger("ytdownloader")
        logger.info("installer_download_completed",
                    url="https://...",
                    size_bytes=5242880,
                    redirects=1)
    """

    def __init__(
        self,
        name: str,
        log_dir: Path | None = None,
        enable_json: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            log_dir: Directory for JSON log files (None = disabled)
            enable_json: Enable JSON file logging
            enable_console: Enable console output
        """
        self.name = name
        self.log_dir = log_dir
        self.enable_json = enable_json and log_dir is not None
        self.enable_console = enable_console

        self._logger = logging.getLogger(name)

        self._json_file = None
        if self.enable_json:
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            json_log_path = log_dir / f"ytdownloader_{timestamp}.jsonl"
            self._json_file = open(json_log_path, "a", encoding="utf-8")  # noqa: SIM115

        self._session_context: dict[str, Any] = {
            "session_id": f"{int(time.time())}_{id(self)}",
            "start_time": datetime.now().isoformat(),
        }

    @property
    def json_path(self) -> Path | None:
        return Path(self._json_file.name) if self._json_file else None

    def set_session_context(self, **kwargs) -> None:
        """Set session-level context that appears in all logs."""
        self._session_context.update(kwargs)

    def _format_message(self, event: str, **context) -> str:
        parts = [f"{event}:"]
        for key, value in context.items():
            if key not in ("level", "timestamp"):
                parts.append(f"{key}={value}")
        return " ".join(parts)

    def _write_json(self, level: str, event: str, **context) -> None:
        if not self._json_file or self._json_file.closed:
            return

        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "event": event,
            **self._session_context,
            **context,
        }

        try:
            self._json_file.write(json.dumps(entry, default=str) + "\n")
            self._json_file.flush()
        except (OSError, TypeError, ValueError) as e:
            print(f"JSON logging failed: {e}", file=sys.stderr)

    def _emit(self, level: int, event: str, **context) -> None:
        if self.enable_console:
            self._logger.log(level, self._format_message(event, **context))
        if self.enable_json:
            self._write_json(logging.getLevelName(level), event, **context)

    def debug(self, event: str, **context) -> None:
        self._emit(logging.DEBUG, event, **context)

    def info(self, event: str, **context) -> None:
        self._emit(logging.INFO, event, **context)

    def warning(self, event: str, **context) -> None:
        self._emit(logging.WARNING, event, **context)

    def error(self, event: str, **context) -> None:
        self._emit(logging.ERROR, event, **context)

    def close(self) -> None:
        """Close JSON log file."""
        if self._json_file and not self._json_file.closed:
            self._json_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class UpdateLogger:
    """Specialized logger for self-update events."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def check_started(self, current_version: str, url: str):
        self.logger.debug("update_check_started", current_version=current_version, url=url)

    def check_skipped(self, reason: str):
        self.logger.warning("update_check_skipped", reason=reason)

    def up_to_date(self, current_version: str, latest_version: str):
        self.logger.debug(
            "update_not_needed",
            current_version=current_version,
            latest_version=latest_version,
        )

    def update_available(self, current_version: str, latest_version: str, asset: str):
        self.logger.info(
            "update_available",
            current_version=current_version,
            latest_version=latest_version,
            asset=asset,
        )

    def download_completed(self, url: str, size_bytes: int, redirects: int):
        self.logger.info(
            "installer_download_completed",
            url=url,
            size_bytes=size_bytes,
            size_mb=round(size_bytes / (1024 * 1024), 2),
            redirects=redirects,
        )

    def download_failed(self, url: str, error: str):
        self.logger.error("installer_download_failed", url=url, error=error)

    def installer_launching(self, path: str, version: str):
        self.logger.info("installer_launch", path=path, version=version)


class AuthLogger:
    """Specialized logger for browser login events."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def stage_entered(self, stage: str):
        self.logger.debug("login_stage_entered", stage=stage)

    def stage_failed(self, stage: str, error: str):
        self.logger.error("login_stage_failed", stage=stage, error=error)

    def target_retry(self, target_url: str, landed_url: str):
        self.logger.warning(
            "login_target_retry", target_url=target_url, landed_url=landed_url
        )

    def dialog_dismissed(self, kind: str, message: str):
        self.logger.debug("dialog_dismissed", kind=kind, message=message)

    def cookies_captured(self, count: int, duration_s: float):
        self.logger.info(
            "cookies_captured", count=count, duration_s=round(duration_s, 2)
        )


def create_structured_logger(
    log_dir: Path | None = None, enable_json: bool = False
) -> tuple[StructuredLogger, UpdateLogger, AuthLogger]:
    """
    Create all structured loggers.

    Returns:
        Tuple of (base_logger, update_logger, auth_logger)
    """
    base = StructuredLogger("ytdownloader.events", log_dir=log_dir, enable_json=enable_json)
    return base, UpdateLogger(base), AuthLogger(base)
