"""
Logging setup for ManuVest.

All application loggers live under the ``manuvest`` namespace. Production
gets one JSON object per line; development gets a short coloured line.

Audit events (status changes, budget transfers) go through
``log_with_context`` so their fields end up as structured keys:

    log_with_context(logger, logging.INFO, 'PR status changed',
                     pr_number='PR-202403-0001', from_status='Submitted',
                     to_status='Approved', user='Sarah Manager')
"""

import os
import sys
import json
import logging
from datetime import datetime, timezone

from flask import has_request_context, request

ROOT_LOGGER = 'manuvest'


class RequestContextFilter(logging.Filter):
    """Stamp records with the HTTP method and path when logged during a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.http_method = request.method
            record.http_path = request.path
        else:
            record.http_method = None
            record.http_path = None
        return True


def _short_name(name: str) -> str:
    prefix = ROOT_LOGGER + '.'
    return name[len(prefix):] if name.startswith(prefix) else name


class JSONFormatter(logging.Formatter):
    """One JSON object per record, audit context under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'ts': datetime.now(timezone.utc).isoformat(timespec='milliseconds'),
            'level': record.levelname,
            'logger': record.name,
            'msg': record.getMessage(),
            'where': f'{record.funcName}:{record.lineno}',
        }
        if getattr(record, 'http_path', None):
            entry['request'] = f'{record.http_method} {record.http_path}'
        context = getattr(record, 'context', None)
        if context:
            entry['context'] = context
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Readable single-line output for a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_color and record.levelno in self.LEVEL_COLORS:
            level = f'{self.LEVEL_COLORS[record.levelno]}{level:8}{self.RESET}'
        else:
            level = f'{level:8}'

        line = (f"{datetime.now():%H:%M:%S} {level} "
                f"{_short_name(record.name)}: {record.getMessage()}")

        context = getattr(record, 'context', None)
        if context:
            line += ' [' + ' '.join(f'{k}={v}' for k, v in context.items()) + ']'
        if getattr(record, 'http_path', None):
            line += f' ({record.http_method} {record.http_path})'
        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


def _detect_json_format() -> bool:
    # gunicorn and explicit production flags switch to JSON
    return (os.environ.get('PRODUCTION', '').lower() == 'true'
            or 'gunicorn' in os.environ.get('SERVER_SOFTWARE', ''))


def setup_logging(level: str = 'INFO', json_format: bool = None) -> logging.Logger:
    """Configure the ``manuvest`` logger tree and return its root.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_format: JSON lines when True; auto-detected when None

    Calling it again (e.g. one app per test) replaces the handler instead of
    stacking another one.
    """
    if json_format is None:
        json_format = _detect_json_format()

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(JSONFormatter() if json_format
                         else DevelopmentFormatter(use_color=sys.stdout.isatty()))
    root.addHandler(handler)
    root.propagate = False
    return root


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Logger under the ``manuvest`` tree, e.g. ``get_logger('manuvest.budget')``."""
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: int, message: str, **context):
    """Log message with structured audit fields. None-valued fields are dropped."""
    fields = {k: v for k, v in context.items() if v is not None}
    # stacklevel=2 reports the caller's function and line
    logger.log(level, message, extra={'context': fields}, stacklevel=2)
