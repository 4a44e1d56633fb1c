# SPDX-License-Identifier: Apache-2.0
"""JSON-lines logging for truth components.

Each component (``policy_store``, ``guardrails``, ``truth_reconciler``,
``coverage_gate`` ...) writes to ``<log dir>/<component>.jsonl``. Policy loads,
coverage overrides and CONFIRMED-without-guardrails contradictions are written
at the AUDIT level so they can be filtered out of the stream.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from truthgate.config import resolve_log_dir
from truthgate.interfaces.ilogger import ILogger

AUDIT_LEVEL = 25
logging.addLevelName(AUDIT_LEVEL, "AUDIT")

ROTATION_BYTES = 5_242_880
BACKUP_COUNT = 3

REDACTION_KEYS = frozenset({"password", "secret", "token", "api_key", "credential", "cookie", "authorization"})

_LOGGER_CACHE: Dict[Tuple[str, Path], "JSONLogger"] = {}


def redact_context(data: Dict[str, Any], redactions: Optional[frozenset[str]] = None) -> Dict[str, Any]:
    keys = redactions or REDACTION_KEYS
    return {key: ("<redacted>" if key.lower() in keys else value) for key, value in data.items()}


class JSONFormatter(logging.Formatter):
    def __init__(self, component: str) -> None:
        super().__init__()
        self.component = component

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        context = dict(getattr(record, "context", None) or {})
        if record.exc_info:
            context["exc"] = self.formatException(record.exc_info)
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "lvl": record.levelname,
            "cmp": self.component,
            "msg": record.getMessage(),
            "ctx": context,
        }
        # Contexts carry enums and paths; render them by str().
        return json.dumps(payload, ensure_ascii=False, default=str)


def _file_handler(logger: logging.Logger, log_path: Path, component: str) -> RotatingFileHandler:
    target = log_path.absolute()
    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler) and Path(handler.baseFilename) == target:
            return handler
    handler = RotatingFileHandler(target, maxBytes=ROTATION_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8")
    handler.setFormatter(JSONFormatter(component))
    logger.addHandler(handler)
    return handler


class JSONLogger(ILogger):
    def __init__(self, component: str = "truthgate", log_file: Optional[Path] = None) -> None:
        self.component = component
        self.log_path = Path(log_file) if log_file else resolve_log_dir() / f"{component}.jsonl"
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

        # Explicit files get their own logger so two files never share handlers.
        name = f"truthgate.{component}" if not log_file else f"truthgate.{component}.{abs(hash(self.log_path.absolute()))}"
        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.DEBUG)
        self._logger.propagate = False
        self._handler = _file_handler(self._logger, self.log_path, component)

    def _emit(self, level: int, msg: str, context: Dict[str, Any], exc_info: Any = None) -> None:
        self._logger.log(level, msg, extra={"context": redact_context(context)}, exc_info=exc_info)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._emit(logging.INFO, msg, kwargs)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._emit(logging.DEBUG, msg, kwargs)

    def error(self, msg: str, error: Optional[Exception] = None, **kwargs: Any) -> None:
        if error is None:
            self._emit(logging.ERROR, msg, kwargs)
            return
        self._emit(logging.ERROR, msg, {**kwargs, "error": repr(error)}, exc_info=(type(error), error, error.__traceback__))

    def audit(self, action: str, actor: str, outcome: str, **details: Any) -> None:
        self._emit(AUDIT_LEVEL, action, {"action": action, "actor": actor, "outcome": outcome, **details})

    @property
    def handler(self) -> RotatingFileHandler:
        return self._handler


def get_logger(component: str = "truthgate", log_file: Optional[Path] = None) -> JSONLogger:
    """Return the cached logger for ``component``.

    Loggers without an explicit file are keyed by the log directory in effect
    at call time, so pointing ``TRUTHGATE_LOG_DIR`` elsewhere yields a fresh one.
    """

    key = (component, (Path(log_file) if log_file else resolve_log_dir()).absolute())
    logger = _LOGGER_CACHE.get(key)
    if logger is None:
        logger = _LOGGER_CACHE[key] = JSONLogger(component=component, log_file=log_file)
    return logger


__all__ = ["get_logger", "JSONLogger", "JSONFormatter", "AUDIT_LEVEL", "ROTATION_BYTES", "BACKUP_COUNT", "redact_context"]
