import json
import logging
import uuid
from contextvars import ContextVar
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from voice_hooks.core.config import get_settings


_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def new_request_id() -> str:
    rid = uuid.uuid4().hex
    _request_id.set(rid)
    return rid


def set_request_id(rid: str | None) -> None:
    _request_id.set(rid)


def get_request_id() -> str | None:
    return _request_id.get()


class JsonFormatter(logging.Formatter):
    """Serialize each record as one JSON line."""

    _RESERVED = set(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "category": record.name,
            "message": record.getMessage(),
            "request_id": get_request_id(),
        }
        for key, value in record.__dict__.items():
            if key not in self._RESERVED and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class SizeAndTimeRotatingFileHandler(TimedRotatingFileHandler):
    """Roll over at midnight or once the file would exceed ``max_bytes``."""

    def __init__(self, filename: str | Path, max_bytes: int = 0, backup_count: int = 0) -> None:
        self.maxBytes = max_bytes
        super().__init__(str(filename), when="midnight", backupCount=backup_count, encoding="utf-8", delay=True)

    def shouldRollover(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if self.maxBytes > 0:
            if self.stream is None:  # pragma: no cover - delay=True
                self.stream = self._open()
            size = len(f"{self.format(record)}\n".encode("utf-8"))
            if self.stream.tell() + size >= self.maxBytes:
                return True
        return super().shouldRollover(record)


_LOGGERS: dict[str, logging.Logger] = {}


def _file_handler(name: str) -> logging.Handler:
    settings = get_settings()
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    return SizeAndTimeRotatingFileHandler(
        log_dir / f"{name}.jsonl",
        max_bytes=settings.log_rotate_mb * 1024 * 1024,
        backup_count=settings.log_retention_days,
    )


def _build_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(f"voice_hooks.{name}")
    if logger.handlers:
        return logger

    handler: logging.Handler
    fallback_error: str | None = None
    try:
        handler = _file_handler(name)
    except Exception as exc:
        # Unusable settings or log dir: log to stderr instead.
        handler = logging.StreamHandler()
        fallback_error = (str(exc).splitlines() or [type(exc).__name__])[0]
    handler.setFormatter(JsonFormatter())
    logger.setLevel(logging.INFO)
    logger.addHandler(handler)
    if fallback_error is not None:
        logger.warning("File logging unavailable", extra={"error": fallback_error})
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the JSON logger for ``name``, creating it on first use."""
    if name not in _LOGGERS:
        _LOGGERS[name] = _build_logger(name)
    return _LOGGERS[name]
