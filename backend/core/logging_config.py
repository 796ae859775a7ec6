"""Logging setup for the caddy backend.

  ENV=prod  -> one JSON object per line, session_id lifted out of the message
  otherwise -> plaintext for local runs

Both formatters scrub the rendered message through observability.redaction
while LOG_REDACTION_ENABLED is on. Turn-level lines carry session=<id>.
"""
import json
import logging
import re
import sys
from typing import Optional

from config.settings import get_settings
from observability.redaction import redact

_SESSION_RE = re.compile(r"session=(\S+)")

_NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore")

PLAINTEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _scrubbed_message(record: logging.LogRecord) -> str:
    message = record.getMessage()
    return redact(message) if get_settings().LOG_REDACTION_ENABLED else message


class RedactingFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        # Scrub a copy so the timestamp and other handlers see the original
        scrubbed = logging.makeLogRecord(record.__dict__)
        scrubbed.msg = _scrubbed_message(record)
        scrubbed.args = None
        return super().format(scrubbed)


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        message = _scrubbed_message(record)
        entry = {
            "ts": self.formatTime(record, TIMESTAMP_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": message,
        }
        session = _SESSION_RE.search(message)
        if session:
            entry["session_id"] = session.group(1)
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = redact(self.formatException(record.exc_info))
        return json.dumps(entry, default=str)


def setup_logging(level: Optional[str] = None) -> None:
    settings = get_settings()
    if settings.ENV == "prod":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = RedactingFormatter(fmt=PLAINTEXT_FORMAT, datefmt=TIMESTAMP_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
