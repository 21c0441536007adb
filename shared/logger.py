import gzip
import logging
import os
import shutil
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

import structlog

from shared.config import get_shared_settings as get_settings


# Short names for noisy third-party loggers
_LOGGER_NAME_MAP = {
    "uvicorn.error": "uvicorn",
    "uvicorn.access": "uvicorn",
    "web.backend.api.deps": "web",
    "web.backend.core.cloudflare": "cloudflare",
    "httpx": "http",
    "httpcore": "http",
    "asyncpg": "db",
    "alembic": "migration",
    "sqlalchemy": "db",
}

# Rotation: 10 MB, 5 files, gzip-compressed
_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
_BACKUP_COUNT = 5


class CompressedRotatingFileHandler(RotatingFileHandler):
    """RotatingFileHandler that gzips rotated files."""

    def doRollover(self):
        if self.stream:
            self.stream.close()
            self.stream = None

        for i in range(self.backupCount - 1, 0, -1):
            sfn = self.rotation_filename(f"{self.baseFilename}.{i}.gz")
            dfn = self.rotation_filename(f"{self.baseFilename}.{i + 1}.gz")
            if os.path.exists(sfn):
                if os.path.exists(dfn):
                    os.remove(dfn)
                os.rename(sfn, dfn)

        dfn = self.rotation_filename(f"{self.baseFilename}.1.gz")
        if os.path.exists(dfn):
            os.remove(dfn)
        if os.path.exists(self.baseFilename):
            with open(self.baseFilename, "rb") as f_in:
                with gzip.open(dfn, "wb") as f_out:
                    shutil.copyfileobj(f_in, f_out)
            with open(self.baseFilename, "w"):
                pass

        if not self.delay:
            self.stream = self._open()


def _shorten_logger_name(logger: object, method_name: str, event_dict: dict) -> dict:
    """structlog processor: shortens logger names."""
    name = event_dict.get("logger", "")
    for prefix, short in _LOGGER_NAME_MAP.items():
        if name == prefix or name.startswith(prefix + "."):
            event_dict["logger"] = short
            return event_dict
    if "." in name:
        event_dict["logger"] = name.rsplit(".", 1)[-1]
    return event_dict


def _compact_kv(logger: object, method_name: str, event_dict: dict) -> dict:
    """structlog processor: compact one-line format for api_call and api_error."""
    event = event_dict.get("event", "")
    if event not in ("api_call", "api_error"):
        return event_dict

    method = event_dict.pop("method", "")
    endpoint = event_dict.pop("endpoint", "")
    status = event_dict.pop("status_code", "")
    duration = event_dict.pop("duration_ms", "")
    error = event_dict.pop("error", "")
    parts = []
    if method and endpoint:
        parts.append(f"{method} {endpoint}")
    if status:
        parts.append(f"→ {status}")
    if duration != "":
        parts.append(f"({duration}ms)")
    if error:
        parts.append(f"| {error}")
    event_dict["event"] = " ".join(parts) if parts else event
    return event_dict


_LEVEL_STYLES = {
    "critical": "\033[1;91m",
    "exception": "\033[1;91m",
    "error": "\033[91m",
    "warn": "\033[93m",
    "warning": "\033[93m",
    "info": "\033[36m",
    "debug": "\033[2;37m",
    "notset": "\033[2m",
}


def _make_console_renderer() -> structlog.dev.ConsoleRenderer:
    return structlog.dev.ConsoleRenderer(
        colors=True,
        pad_event_to=40,
        level_styles=_LEVEL_STYLES,
    )


def setup_logger(log_dir: Optional[str] = None, log_level: Optional[str] = None) -> logging.Logger:
    """Configure the root logger with structlog console and JSON file output.

    Called once from the application lifespan. Falls back to console-only
    logging when the log directory cannot be created.
    """
    settings = get_settings()
    level_name = (log_level or settings.log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _shorten_logger_name,
            _compact_kv,
            _make_console_renderer(),
        ],
        foreign_pre_chain=shared_processors,
    ))
    root.addHandler(console)

    try:
        directory = Path(log_dir or settings.log_dir)
        directory.mkdir(parents=True, exist_ok=True)

        file_handler = CompressedRotatingFileHandler(
            filename=str(directory / "web.log"),
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _shorten_logger_name,
                structlog.processors.JSONRenderer(),
            ],
            foreign_pre_chain=shared_processors,
        ))
        root.addHandler(file_handler)
    except OSError as exc:
        print(f"[LOGGING] File logging DISABLED: {exc}", file=sys.stderr, flush=True)

    http_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    logging.getLogger("httpx").setLevel(http_level)
    logging.getLogger("httpcore").setLevel(http_level)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    return logging.getLogger("web")


def log_api_call(method: str, endpoint: str, status_code: Optional[int] = None, duration_ms: Optional[float] = None) -> None:
    """Log an outbound API call."""
    log = structlog.get_logger("web.cloudflare")
    kwargs: dict[str, Any] = {"method": method, "endpoint": endpoint}
    if status_code:
        kwargs["status_code"] = status_code
    if duration_ms is not None:
        kwargs["duration_ms"] = round(duration_ms)
    log.info("api_call", **kwargs)


def log_api_error(method: str, endpoint: str, error: Exception, status_code: Optional[int] = None) -> None:
    """Log a failed outbound API call."""
    log = structlog.get_logger("web.cloudflare")
    kwargs: dict[str, Any] = {"method": method, "endpoint": endpoint, "error": f"{type(error).__name__}: {error}"}
    if status_code:
        kwargs["status_code"] = status_code
    log.error("api_error", **kwargs)
