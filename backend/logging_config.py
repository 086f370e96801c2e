"""Logging configuration for backend."""
import logging
import os
import json
from logging.handlers import RotatingFileHandler
from flask import g, has_request_context, request
from shared.models import now

LOG_FILE_NAME = 'field_docs.log'
NOISY_LOGGERS = ('werkzeug', 'sqlalchemy.engine', 'PIL')
HANDLER_TAG = '_field_docs_handler'


class RequestContextFilter(logging.Filter):
    """Attach the current request's method, path and user to each record."""

    def filter(self, record):
        if has_request_context():
            record.request_fields = {
                'method': request.method,
                'path': request.path,
                'user_id': g.get('user_id'),
            }
        return True


class StructuredFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, request and extra fields."""

    def format(self, record):
        log_entry = {
            'timestamp': now().isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        request_fields = getattr(record, 'request_fields', None)
        if request_fields:
            log_entry['request'] = request_fields

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_entry.update(record.extra_fields)

        return json.dumps(log_entry, default=str)


def setup_logging(log_dir=None, log_level=None):
    """Configure root logging for the API process.

    Args:
        log_dir: Directory for the rotating JSON log; falls back to LOG_DIR, then ./logs
        log_level: Level name; falls back to LOG_LEVEL, then INFO

    Returns:
        logging.Logger: The configured root logger
    """
    log_level_str = (log_level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    level = getattr(logging, log_level_str, logging.INFO)

    logs_dir = log_dir or os.getenv('LOG_DIR') or os.path.join(os.path.dirname(__file__), '..', 'logs')
    os.makedirs(logs_dir, exist_ok=True)
    log_file = os.path.join(logs_dir, LOG_FILE_NAME)

    root = logging.getLogger()
    root.setLevel(level)

    # Replace only our own handlers; ones installed by a host process stay
    for handler in list(root.handlers):
        if getattr(handler, HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    context_filter = RequestContextFilter()

    file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
    file_handler.setLevel(level)
    file_handler.setFormatter(StructuredFormatter())
    file_handler.addFilter(context_filter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)-8s %(name)-28s %(message)s'))

    for handler in (file_handler, console_handler):
        setattr(handler, HANDLER_TAG, True)

    root.addHandler(file_handler)
    root.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info("Logging initialized", extra={
        'extra_fields': {
            'log_level': log_level_str,
            'log_file': log_file,
        }
    })
    return root
