"""Logging setup: one readable line per record, extras appended as JSON.

Integration configs carry CMS and media credentials, so extras whose key
names a credential are masked before they are written.
"""

import json
import logging
import sys
from typing import Any

from app.config import settings

MASK = "***"

SENSITIVE_EXTRA_KEYS = frozenset(
    {
        "access_token",
        "api_key",
        "api_secret",
        "api_token",
        "app_password",
        "authorization",
        "password",
        "token",
    }
)


def _masked(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: MASK if str(key).lower() in SENSITIVE_EXTRA_KEYS else _masked(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_masked(item) for item in value]
    return value


class JSONExtrasFormatter(logging.Formatter):
    """``time | LEVEL | logger | message {extras}``

    e.g. ``2025-01-15 10:30:45 | INFO     | app.services.publishing | Post published {"platform": "webflow"}``
    """

    RESERVED_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        timestamp = self.formatTime(record, self.datefmt)
        line = f"{timestamp} | {record.levelname:<8} | {record.name} | {record.message}"

        extras = _masked(
            {
                key: value
                for key, value in record.__dict__.items()
                if key not in self.RESERVED_ATTRS and not key.startswith("_")
            }
        )
        if extras:
            try:
                line = f"{line} {json.dumps(extras, default=str, ensure_ascii=False)}"
            except (TypeError, ValueError):
                line = f"{line} {extras!r}"

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            line = f"{line}\n{record.exc_text}"
        return line


def setup_logging(debug: bool | None = None) -> None:
    """Attach the console handler to the ``app`` logger once."""
    level = logging.DEBUG if (settings.debug if debug is None else debug) else logging.INFO
    logger = logging.getLogger("app")
    logger.setLevel(level)
    if logger.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONExtrasFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    logger.propagate = False

    # Request lines from httpx would repeat every CMS and backend call.
    logging.getLogger("httpx").setLevel(logging.WARNING)
