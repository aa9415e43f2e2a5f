"""
Structured Logging Configuration Module

JSON (or plain text) log output for ledger operations. Every ledger log line
can carry the acting account, the operation name, the affected resource and
a dictionary of operation details.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Optional


TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Record attributes copied into the JSON payload when present
STRUCTURED_FIELDS = ("user_id", "action", "resource", "extra")

# Marks handlers owned by setup_logging so reconfiguring replaces only those
_HANDLER_MARK = "_token_ledger_handler"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, omitting unset structured fields"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", logger_name: str = "token_ledger",
                  log_format: str = "json") -> logging.Logger:
    """
    Install a stream handler on the ledger logger.

    Calling it again swaps the previously installed handler; handlers added
    by anything else are left in place.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        logger_name: Name of the root ledger logger
        log_format: "json" for structured output, "text" for plain lines

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)

    for handler in logger.handlers[:]:
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(TEXT_FORMAT) if log_format == "text" else JSONFormatter()
    )
    setattr(handler, _HANDLER_MARK, True)

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False

    return logger


def get_logger(name: str = "token_ledger") -> logging.Logger:
    """Get logger instance"""
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               user_id: Optional[str] = None, action: Optional[str] = None,
               resource: Optional[str] = None, extra: Optional[dict] = None):
    """
    Log a ledger operation with structured fields.

    Args:
        logger: Logger instance
        level: Log level name (info, warning, error, ...)
        message: Log message
        user_id: Hex id of the account that initiated the operation
        action: Operation name
        resource: Resource being acted upon
        extra: Operation details
    """
    fields = {
        "user_id": user_id,
        "action": action,
        "resource": resource,
        "extra": extra or None,
    }
    logger.log(getattr(logging, level.upper()), message, extra=fields)
