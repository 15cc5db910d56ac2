import json
import logging
import sys

from corsrelay.config import ConfigManager

_RESERVED_ATTRS = frozenset(
    logging.LogRecord(None, None, None, None, '', (), None).__dict__.keys()
) | {"exc_info", "message", "asctime"}


class CustomJSONFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "name": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": "corsrelay",
        }

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        # Fields passed through `extra=`
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_record:
                log_record[key] = value

        return json.dumps(log_record, default=str)


def setup_logging(log_level: str | None = None):
    log_level = (log_level or ConfigManager.LOG_LEVEL).upper()

    logger = logging.getLogger("corsrelay")
    logger.setLevel(log_level)

    if any(getattr(h, "_corsrelay", False) for h in logger.handlers):
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(CustomJSONFormatter())
    console_handler._corsrelay = True
    logger.addHandler(console_handler)
    return logger
