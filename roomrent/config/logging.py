"""Logging configuration for the application."""
import logging
import logging.config
import sys
from pathlib import Path

from roomrent.config.settings import settings


def setup_logging():
    """Setup logging configuration."""
    logs_dir = Path(settings.LOG_DIR)
    logs_dir.mkdir(parents=True, exist_ok=True)

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    detailed_format = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
    console_formatter = "json" if settings.LOG_JSON else "simple"

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "simple": {
                "format": log_format,
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
            "detailed": {
                "format": detailed_format,
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
            "json": {
                "()": "roomrent.core.logging.JSONFormatter"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "INFO",
                "formatter": console_formatter,
                "stream": sys.stdout
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "DEBUG",
                "formatter": "detailed",
                "filename": str(logs_dir / "app.log"),
                "maxBytes": 10485760,  # 10MB
                "backupCount": 5
            },
            "error_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "ERROR",
                "formatter": "detailed",
                "filename": str(logs_dir / "error.log"),
                "maxBytes": 10485760,  # 10MB
                "backupCount": 5
            },
            "access_file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": "INFO",
                "formatter": "detailed",
                "filename": str(logs_dir / "access.log"),
                "maxBytes": 10485760,  # 10MB
                "backupCount": 5
            }
        },
        "loggers": {
            "": {
                "level": settings.LOG_LEVEL.upper(),
                "handlers": ["console", "file"],
                "propagate": False
            },
            "roomrent": {
                "level": "DEBUG" if settings.DEBUG else settings.LOG_LEVEL.upper(),
                "handlers": ["console", "file"],
                "propagate": False
            },
            "uvicorn": {
                "level": "INFO",
                "handlers": ["console", "access_file"],
                "propagate": False
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["access_file"],
                "propagate": False
            },
            # Supabase client chatter
            "httpx": {
                "level": "WARNING",
                "handlers": ["console", "file"],
                "propagate": False
            },
            "realtime": {
                "level": "WARNING",
                "handlers": ["console", "file"],
                "propagate": False
            },
            "roomrent.errors": {
                "level": "ERROR",
                "handlers": ["console", "error_file"],
                "propagate": False
            }
        }
    }

    logging.config.dictConfig(logging_config)

    logger = logging.getLogger("roomrent")
    logger.info(f"Logging configured with level: {settings.LOG_LEVEL}")

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging.getLogger(name)


# Initialize logging when module is imported
setup_logging()
