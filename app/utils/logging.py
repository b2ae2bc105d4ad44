import json
import logging
import os
import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict

from loguru import logger

from app.utils.context import get_request_id

DEFAULT_RUN_ID = "engine"
CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"

# Library loggers routed into loguru, with the level they are capped at
LIBRARY_LOGGERS = {
    "celery": logging.INFO,
    "celery.beat": logging.INFO,
    "celery.worker": logging.INFO,
    "httpx": logging.WARNING,
    "sqlalchemy": logging.WARNING,
}


class InterceptHandler(logging.Handler):
    """Forward stdlib records (celery, httpx, sqlalchemy) to loguru."""

    def emit(self, record: logging.LogRecord):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.bind(request_id=get_request_id() or DEFAULT_RUN_ID).opt(
            depth=depth, exception=record.exc_info
        ).log(level, record.getMessage())


class CustomizeLogger:
    """Builds the loguru sinks from a section of logging_config.json"""

    @classmethod
    def make_logger(cls, config_path: Path = CONFIG_PATH, environment: str = "logger"):
        with open(config_path) as config_file:
            config = json.load(config_file)
        section: Dict[str, Any] = config.get(environment) or config["logger"]

        level = os.getenv("LOG_LEVEL", section["level"]).upper()
        logger.remove()
        logger.configure(extra={"request_id": DEFAULT_RUN_ID})

        logger.add(
            sys.stdout,
            enqueue=True,
            backtrace=True,
            level=level,
            format=section["console_format"],
            colorize=True,
        )
        cls._add_file_sink(section, level)
        cls._intercept_library_loggers()
        return logger

    @staticmethod
    def _add_file_sink(section: Dict[str, Any], level: str):
        path = Path(section["log_dir"]) / (
            f"{date.today().strftime('%Y-%m-%d')}-{section['filename']}"
        )
        options = dict(
            rotation=section.get("rotation"),
            retention=section.get("retention"),
            enqueue=True,
            backtrace=True,
            level=level,
            colorize=False,
        )
        if section.get("use_json_logs") and section.get("file_format") == "json":
            logger.add(str(path), serialize=True, **options)
        else:
            logger.add(str(path), format=section["file_format"], **options)

    @staticmethod
    def _intercept_library_loggers():
        logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
        for name, level in LIBRARY_LOGGERS.items():
            library_logger = logging.getLogger(name)
            library_logger.handlers = [InterceptHandler()]
            library_logger.propagate = False
            library_logger.setLevel(level)


custom_logger = CustomizeLogger.make_logger(
    CONFIG_PATH,
    "production" if os.getenv("ENVIRONMENT", "development") == "production" else "logger",
)


def get_logger():
    """Logger bound to the current job run id."""
    return custom_logger.bind(request_id=get_request_id() or DEFAULT_RUN_ID)
