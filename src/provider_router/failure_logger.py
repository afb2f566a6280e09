import logging
import json
from logging.handlers import RotatingFileHandler
import os
from typing import Optional

import httpx

from .errors import mask_credential

failure_logger = logging.getLogger("provider_router.failures")
failure_logger.propagate = False
if not failure_logger.handlers:
    failure_logger.addHandler(logging.NullHandler())


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.msg if isinstance(record.msg, dict) else record.getMessage(),
        }
        return json.dumps(log_record, default=str)


def setup_failure_logger(log_dir: str = "logs") -> logging.Logger:
    """Sets up a dedicated JSON log file for failed requests reported to the router."""
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    failure_logger.setLevel(logging.INFO)

    # Use a rotating file handler to keep log files from growing too large
    handler = RotatingFileHandler(
        os.path.join(log_dir, 'failures.log'),
        maxBytes=5*1024*1024,  # 5 MB
        backupCount=2
    )
    handler.setFormatter(JsonFormatter())

    # Add handler only if it hasn't been added before
    if not any(isinstance(h, RotatingFileHandler) for h in failure_logger.handlers):
        failure_logger.addHandler(handler)
    else:
        handler.close()

    return failure_logger


def log_failure(
    provider: str,
    capability: str,
    error_type: Optional[str],
    error: Optional[BaseException] = None,
    credential: Optional[str] = None,
    consecutive_errors: int = 0,
):
    """Logs a structured message for a failed request."""

    # Try to get the raw response from the exception if it exists
    raw_response = None
    response = getattr(error, 'response', None)
    if response is not None:
        try:
            raw_response = response.text
        except (AttributeError, httpx.ResponseNotRead):
            raw_response = None

    log_data = {
        "provider": provider,
        "key_ending": mask_credential(credential),
        "capability": capability,
        "error_type": error_type,
        "error_class": type(error).__name__ if error is not None else None,
        "error_message": str(error) if error is not None else None,
        "raw_response": raw_response,
        "consecutive_errors": consecutive_errors,
    }
    failure_logger.error(log_data)
