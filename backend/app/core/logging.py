from __future__ import annotations

import logging
import sys
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

SERVICE_NAME = "song-pool"


class _JsonFormatter(jsonlogger.JsonFormatter):
    def __init__(self, *args: Any, environment: str = "development", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.environment = environment

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        if not log_record.get("level"):
            log_record["level"] = record.levelname
        log_record.setdefault("service", SERVICE_NAME)
        log_record.setdefault("environment", self.environment)
        if record.exc_info and not log_record.get("exc_info"):
            log_record["exc_info"] = self.formatException(record.exc_info)


def setup_logging(level: str = "INFO", *, environment: str = "development") -> logging.Handler:
    """Send JSON log lines to stdout, tagged with the service and environment.

    Returns the installed handler so callers can attach it elsewhere.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter("%(asctime)s %(level)s %(name)s %(message)s", environment=environment))

    root = logging.getLogger()
    root.setLevel(level.upper())
    root.handlers.clear()
    root.addHandler(handler)

    # pool building logs per-user counts at info; library chatter stays at warning
    for noisy in ("httpx", "httpcore", "aiosqlite", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    return handler
