"""
Logging setup for carepath entry points.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import Literal

from rich.console import Console
from rich.logging import RichHandler

LogFormat = Literal["console", "json", "rich"]

_CONFIGURED_ATTR = "_carepath_logging_inited"


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: int | str | None = None, fmt: LogFormat | None = None) -> None:
    """
    Configure the root logger. Idempotent.

    Defaults come from CAREPATH_LOG_LEVEL and CAREPATH_LOG_FORMAT.
    """
    root = logging.getLogger()
    if getattr(root, _CONFIGURED_ATTR, False):
        return

    level = level or os.environ.get("CAREPATH_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    fmt = fmt or os.environ.get("CAREPATH_LOG_FORMAT", "console")

    for h in list(root.handlers):
        root.removeHandler(h)

    handler: logging.Handler
    if fmt == "rich":
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
    elif fmt == "json":
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(
            "[%(levelname)s] %(asctime)s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        ))

    root.setLevel(level)
    root.addHandler(handler)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        for h in list(logger.handlers):
            logger.removeHandler(h)
        logger.propagate = True

    setattr(root, _CONFIGURED_ATTR, True)
