import json
import logging
import logging.config
import sys

from core.config import configs


class JsonFormatter(logging.Formatter):
    """
    Formatter for logging in JSON format.
    """

    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False)


# Third-party loggers and the level they are capped at.
NOISY_LOGGERS = {
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
    "uvicorn.error": "INFO",
    "httpx": "WARNING",
    "httpcore": "WARNING",
    "PIL": "WARNING",
    "google.auth": "INFO",
    "google.cloud": "INFO",
}


def _library_loggers(handler: str) -> dict:
    return {
        name: {"level": level, "handlers": [handler], "propagate": False}
        for name, level in NOISY_LOGGERS.items()
    }


# -----------------------------------------------------------------------------
# Development Logging Configuration
# -----------------------------------------------------------------------------
# Console-friendly, readable text format.
DEV_LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "stream": sys.stdout,
            "formatter": "default",
        },
    },
    "loggers": {
        "root": {
            "level": configs.LOG_LEVEL,
            "handlers": ["console"],
        },
        "app": {
            "level": "INFO",
            "handlers": ["console"],
            "propagate": False,
        },
        **_library_loggers("console"),
    },
}

# -----------------------------------------------------------------------------
# Production Logging Configuration
# -----------------------------------------------------------------------------
# JSON structured, one record per line.
PROD_LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": JsonFormatter,
            "datefmt": "%Y-%m-%dT%H:%M:%S%z",
        },
    },
    "handlers": {
        "console_json": {
            "class": "logging.StreamHandler",
            "stream": sys.stdout,
            "formatter": "json",
        },
    },
    "loggers": {
        "root": {
            "level": configs.LOG_LEVEL,
            "handlers": ["console_json"],
        },
        "app": {
            "level": configs.LOG_LEVEL,
            "handlers": ["console_json"],
            "propagate": False,
        },
        **_library_loggers("console_json"),
        "uvicorn.error": {
            "level": "ERROR",
            "handlers": ["console_json"],
            "propagate": False,
        },
    },
}


def setup_logging():
    """
    Set up logging configuration based on the environment.
    """
    env = configs.ENVIRONMENT.lower()

    if env == "production":
        log_config = PROD_LOGGING_CONFIG
    else:
        log_config = DEV_LOGGING_CONFIG

    logging.config.dictConfig(log_config)

    logger = logging.getLogger("app")
    logger.info(f"Logging setup complete for {env} environment with level {configs.LOG_LEVEL}")
