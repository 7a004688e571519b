"""
Logging setup for risk-planner commands.

``configure_logging(config, command=..., product=...)`` is called exactly once
per CLI invocation, before any input is loaded.  Engine modules only ever
call ``logging.getLogger(__name__)``; they never configure handlers.

Every record emitted during a run is stamped with the running ``command`` and
``product`` by ``_RunContextFilter``, so a shared log file (``log_file`` in
``[logging]``) can be split per product afterwards.

Handlers write to **stderr**: stdout carries the command's report tables and
``[OK]`` / ``[ERROR]`` lines and must stay parseable.

With ``json_format = true`` each record is a single JSON line::

    {"ts": "2026-03-01T12:00:00Z", "level": "INFO", "logger": "risk_planner.risk.register",
     "command": "risk-register", "product": "shop", "msg": "Risk register: 3 risks, ..."}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from risk_planner.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(command)s/%(product)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Attributes every LogRecord carries; anything else came from ``extra=``.
_STANDARD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}
_CONTEXT_ATTRS = ("command", "product")


class _RunContextFilter(logging.Filter):
    """Attach the CLI command and product to every record."""

    def __init__(self, command: str, product: str) -> None:
        super().__init__()
        self.command = command
        self.product = product

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "command"):
            record.command = self.command
        if not hasattr(record, "product"):
            record.product = self.product
        return True


class _JsonFormatter(logging.Formatter):
    """One JSON object per record; ``extra=`` keys are merged at top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
        }
        for attr in _CONTEXT_ATTRS:
            payload[attr] = getattr(record, attr, "-")
        payload["msg"] = record.getMessage()

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        for key, val in record.__dict__.items():
            if key in _STANDARD_ATTRS or key in payload or key.startswith("_"):
                continue
            payload[key] = val
        return json.dumps(payload, default=str)


def _build_formatter(config: "LoggingConfig") -> logging.Formatter:
    if config.json_format:
        return _JsonFormatter()
    return logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def _build_handlers(
    config: "LoggingConfig",
    level: int,
    context: _RunContextFilter,
) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    formatter = _build_formatter(config)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context)
    return handlers


def configure_logging(
    config: "LoggingConfig",
    command: str = "-",
    product: Optional[str] = None,
) -> None:
    """Configure the root logger for one CLI run.

    Args:
        config:  ``[logging]`` section of ``AppConfig``.
        command: CLI command name stamped on every record.
        product: Product being analysed, if the command has one.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)
    context = _RunContextFilter(command, product or "-")
    logging.basicConfig(level=level, handlers=_build_handlers(config, level, context), force=True)
