from __future__ import annotations

import logging
import sys
from decimal import Decimal

from .config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Context keys surfaced from `extra=`, in output order
CONTEXT_KEYS = (
    "event",
    "user_id",
    "partner_id",
    "dancer_id",
    "submission_id",
    "payout_id",
    "commission_id",
    "transfer_id",
    "amount_cents",
    "commission_cents",
    "rate",
    "active_count",
    "referral_count",
    "status",
    "outcome",
    "error",
    "took_ms",
)


class KVFormatter(logging.Formatter):
    """Human-readable log line followed by ``key=value`` context.

    Only keys from ``CONTEXT_KEYS`` that were passed via ``extra`` and are not
    None are appended.
    """

    def _render(self, key: str, value) -> str:
        if key == "error":
            return f"{key}={value!r}"
        if isinstance(value, Decimal):
            return f"{key}={value.normalize():f}"
        return f"{key}={value}"

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = [
            self._render(key, getattr(record, key))
            for key in CONTEXT_KEYS
            if getattr(record, key, None) is not None
        ]
        return f"{line} | {' '.join(context)}" if context else line


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Install a single stdout handler with KVFormatter on the root logger.

    Idempotent: handlers from earlier calls (app reloads, Celery worker start)
    are replaced.
    """
    root = logging.getLogger()
    root.setLevel(level or get_settings().log_level)

    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(KVFormatter(LOG_FORMAT))
    root.addHandler(handler)

    # httpx logs every request at INFO
    for noisy in ("httpx", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return root
