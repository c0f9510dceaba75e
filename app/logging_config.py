"""Logging setup."""

import json
import logging
from datetime import datetime, timezone

CONTEXT_FIELDS = (
    "user_id",
    "action",
    "resource_type",
    "resource_id",
    "audit_id",
    "retention_days",
    "deleted",
)


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON with structured audit context."""

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_record[field] = value
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


def configure_logging(log_level: str, json_output: bool = True) -> None:
    """Install a single stream handler on the root logger.

    Parameters
    ----------
    log_level : str
        Root logging level name.
    json_output : bool, default=True
        Emit JSON lines instead of plain text.

    Returns
    -------
    None
        Replaces existing root handlers.
    """
    handler = logging.StreamHandler()
    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level.upper())
    root_logger.addHandler(handler)
