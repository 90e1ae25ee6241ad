"""Logging configuration for the subscriptions API."""
import json
import logging
import sys
from typing import Any, Optional

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

class JsonFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def __init__(self, service_name: str = "subscriptions-api") -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }
        for key, value in vars(record).items():
            if key not in _RESERVED and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["error"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ContextAdapter(logging.LoggerAdapter):
    """Merge the bound request context into each record's ``extra``."""

    def process(self, msg: Any, kwargs: dict) -> tuple:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def _parse_level(level: Optional[str]) -> int:
    if not level:
        return logging.INFO
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        return logging.INFO
    return resolved


def setup_logging(level: Optional[str] = None, fmt: str = "json", service_name: Optional[str] = None) -> None:
    """
    Configure root logging to stdout.

    Args:
        level: Level name (debug, info, warning, error). Unknown names fall back to INFO.
        fmt: ``json`` for one JSON object per line, anything else for plain text.
        service_name: Value of the ``service`` field on JSON records.
    """
    log_level = _parse_level(level)

    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(JsonFormatter(service_name or "subscriptions-api"))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt=DATE_FORMAT
        ))

    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(log_level)
    # SQL statements only show up when running at debug
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if log_level <= logging.DEBUG else logging.WARNING
    )


def request_logger(request_id: str, **context: Any) -> ContextAdapter:
    """Logger bound to a single request, handed to the service explicitly."""
    return ContextAdapter(logging.getLogger("subscription_tracker"), {"request_id": request_id, **context})
