"""Log output configuration for the ScreenLogic client.

Library modules log through ``logging.getLogger(__name__)`` with
``extra={...}`` and never configure handlers themselves. An application
calls ``get_logger("screenlogic")`` once; every module logger in the package
then propagates into the handlers installed here, which render records as
JSON lines, human-readable lines, or both, tagged with the active
correlation id.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import cast, override

from screenlogic import const
from screenlogic.correlation import get_correlation_id, get_operation

__all__ = [
    "HumanReadableFormatter",
    "JSONFormatter",
    "ScreenLogicLogger",
    "get_logger",
    "record_context",
]

LOG_FORMATS = ("human", "json", "both")

_BASELINE_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "extra_data"}


def record_context(record: logging.LogRecord) -> dict[str, object]:
    """Return the fields a caller attached to ``record`` through ``extra=``.

    A mapping passed as ``extra={"extra_data": {...}}`` is flattened into the
    result.
    """
    context = {key: value for key, value in vars(record).items() if key not in _BASELINE_ATTRS}
    nested = getattr(record, "extra_data", None)
    if isinstance(nested, Mapping):
        context.update(cast("Mapping[str, object]", nested))
    return context


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "source": f"{record.module}:{record.lineno}",
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
            "operation": get_operation(),
        }
        if context := record_context(record):
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """``time level [module:line] [corr-id] > message | key=value ...``"""

    def __init__(self) -> None:
        super().__init__(datefmt="%m/%d/%y %H:%M:%S")

    @override
    def format(self, record: logging.LogRecord) -> str:
        correlation_id = get_correlation_id()
        tag = correlation_id[:8] if correlation_id else "-" * 8
        line = (
            f"{self.formatTime(record, self.datefmt)}.{int(record.msecs):03d} {record.levelname} "
            f"[{record.module}:{record.lineno}] [{tag}] > {record.getMessage()}"
        )
        if context := record_context(record):
            line += " | " + " | ".join(f"{key}={value}" for key, value in context.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _file_handler(path: str | Path) -> logging.Handler:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(target, mode="a")


def _human_handler(destination: str) -> logging.Handler:
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    return _file_handler(destination)


class ScreenLogicLogger:
    """Handler setup for one named logger (normally the ``screenlogic`` package logger).

    Handlers are installed only the first time a given logger is wrapped, so
    repeated ``get_logger`` calls do not duplicate output.
    """

    def __init__(
        self,
        name: str,
        log_format: str = "human",
        json_file: str | Path | None = None,
        human_output: str | None = "stderr",
    ) -> None:
        if log_format not in LOG_FORMATS:
            msg = f"log_format must be one of {LOG_FORMATS}, got {log_format!r}"
            raise ValueError(msg)
        self.name: str = name
        self.log_format: str = log_format
        self.logger: logging.Logger = logging.getLogger(name)
        if not self.logger.handlers:
            self.logger.setLevel(logging.DEBUG if const.SCREENLOGIC_DEBUG else logging.INFO)
            self._install(json_file, human_output or "stderr")

    def _install(self, json_file: str | Path | None, human_output: str) -> None:
        failures: list[str] = []
        pending: list[tuple[logging.Handler, logging.Formatter]] = []

        if self.log_format != "human" and json_file:
            try:
                pending.append((_file_handler(json_file), JSONFormatter()))
            except OSError as e:
                failures.append(f"JSON log file {json_file}: {e}")

        if self.log_format != "json":
            try:
                handler = _human_handler(human_output)
            except OSError as e:
                failures.append(f"human log file {human_output}: {e}")
                handler = logging.StreamHandler(sys.stderr)
            pending.append((handler, HumanReadableFormatter()))

        for handler, formatter in pending:
            handler.setFormatter(formatter)
            handler.setLevel(self.logger.level)
            self.logger.addHandler(handler)

        for failure in failures:
            self.logger.warning("✗ Could not open %s", failure)

    def set_level(self, level: int) -> None:
        """Apply ``level`` to the logger and every handler on it."""
        self.logger.setLevel(level)
        for handler in self.logger.handlers:
            handler.setLevel(level)

    @property
    def handlers(self) -> list[logging.Handler]:
        return self.logger.handlers


def get_logger(
    name: str,
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
) -> ScreenLogicLogger:
    """Configure ``name`` for output, defaulting each option from the environment."""
    return ScreenLogicLogger(
        name,
        log_format=log_format or const.SCREENLOGIC_LOG_FORMAT,
        json_file=json_file or const.SCREENLOGIC_LOG_JSON_FILE,
        human_output=human_output or const.SCREENLOGIC_LOG_HUMAN_OUTPUT,
    )
