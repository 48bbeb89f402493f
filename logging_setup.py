import logging
import json
from logging.handlers import TimedRotatingFileHandler
import os
from datetime import datetime

LOG_DIR = os.getenv("LOG_DIR", "logs")

class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def setup_logger(log_dir: str = LOG_DIR, level: int = logging.INFO):
    logger = logging.getLogger()
    logger.setLevel(level)

    # Handlers are attached once even if the app factory runs repeatedly (tests).
    if getattr(logger, "_clinic_configured", False):
        return logger

    os.makedirs(log_dir, exist_ok=True)

    # Log file rotates daily, keeps 14 days
    handler = TimedRotatingFileHandler(
        filename=f"{log_dir}/clinic_portal.log",
        when="midnight",
        backupCount=14,
        encoding="utf-8"
    )

    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    # Also log to console for debugging
    console = logging.StreamHandler()
    console.setFormatter(JsonFormatter())
    logger.addHandler(console)

    logger._clinic_configured = True
    return logger
