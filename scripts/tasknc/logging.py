"""Logging setup for tasknc.

The terminal belongs to the UI, so log records go to a run log file rather
than stderr.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

DEFAULT_LOG_FILE = Path("/tmp/.tasknc_runlog")
EXTRA_FIELDS = ("command", "uuid", "rule", "returncode", "error_category")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - formatting
        data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for extra_key in EXTRA_FIELDS:
            if hasattr(record, extra_key):
                data[extra_key] = getattr(record, extra_key)
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data)


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    json_output: bool = False,
) -> logging.Logger:
    resolved_level = level or os.environ.get("TASKNC_LOG_LEVEL") or "WARNING"
    path = Path(log_file) if log_file else DEFAULT_LOG_FILE
    handler: logging.Handler
    try:
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError:
        handler = logging.NullHandler()
    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root = logging.getLogger()
    root.handlers = []
    root.setLevel(getattr(logging, str(resolved_level).upper(), logging.WARNING))
    root.addHandler(handler)
    return logging.getLogger("tasknc")


def get_logger(name: str = "tasknc") -> logging.Logger:
    return logging.getLogger(name)


def json_logging_from_env() -> bool:
    return os.environ.get("TASKNC_LOG_JSON", "").lower() in ("1", "true", "yes")


# Standard exit codes for the CLI
EXIT_OK = 0
EXIT_RUNTIME_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_DEP_MISSING = 3
