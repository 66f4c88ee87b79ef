from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

_RESERVED_LOG_RECORD_FIELDS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys() | {"message", "asctime", "taskName"}
)


class JsonFormatter(logging.Formatter):
    """One JSON object per record; `extra=` fields are carried as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key in _RESERVED_LOG_RECORD_FIELDS or key.startswith("_"):
                continue
            payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=True)


def configure_app_logging(level: str = "INFO", fmt: str = "plain") -> None:
    """
    Logging configuration for the helpdesk package.

    Notes:
    - stdlib logging only.
    - "plain": Uvicorn already configures handlers; we only set levels for our package.
    - "json": replace root handlers with a single JSON stream handler.
    - Set `HELPDESK_LOG_LEVEL=DEBUG` to see authorization denials.
    """

    normalized = level.upper()
    if fmt == "json":
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        root = logging.getLogger()
        root.handlers.clear()
        root.addHandler(handler)
        root.setLevel(normalized)

    logging.getLogger("helpdesk").setLevel(normalized)
    # Ensure child loggers under helpdesk.* inherit this level.
    logging.getLogger("helpdesk").propagate = True
