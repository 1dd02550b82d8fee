import logging
import os
import sys
import uuid
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from loguru import logger

from gallery.core.config import Environment, settings

if TYPE_CHECKING:
    from loguru import Record

# Set by LoggingMiddleware for the duration of a request
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

LOG_DIR = Path("logs")
LOG_FILE = LOG_DIR / "gallery.log"
# Throttled requests and failed logins, one JSON object per line
SECURITY_LOG_FILE = LOG_DIR / "security.jsonl"

LOG_LEVELS = {
    50: "CRITICAL",
    40: "ERROR",
    30: "WARNING",
    20: "INFO",
    10: "DEBUG",
    0: "NOTSET",
}

LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss!UTC} | {level: <8} | "
    "{extra[process_id]}:{extra[request_id]} | {name}:{line} | {message}"
)
CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<yellow>{extra[request_id]}</yellow> | <cyan>{name}:{line}</cyan> | "
    "<level>{message}</level>"
)

# Abuse-control events, routed to the security sink as well as the regular ones
security_logger = logger.bind(security=True)


def correlation_filter(record: "Record") -> bool:
    """
    Attach the request ID and the worker PID to every record.

    Records logged outside a request get a fresh 8 character ID.
    """
    record["extra"]["request_id"] = request_id_var.get() or str(uuid.uuid4())[:8]
    record["extra"]["process_id"] = os.getpid()

    return True


def security_filter(record: "Record") -> bool:
    correlation_filter(record)

    return bool(record["extra"].get("security"))


class InterceptHandler(logging.Handler):
    """Send uvicorn, redis and aiohttp records through loguru."""

    def emit(self, record: logging.LogRecord):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logger():
    """
    Configure loguru sinks, called once from the FastAPI lifespan.

    - console, DEBUG in dev, short timestamps
    - logs/gallery.log, rotated at 10 MB, kept 3 months, gzip compressed
    - logs/security.jsonl, serialized records of throttled requests and
      failed logins, kept for the same period

    Every sink is enqueued, uvicorn workers share the files.
    """
    logger.remove()
    LOG_DIR.mkdir(exist_ok=True)

    log_level = LOG_LEVELS.get(settings.log_level, "INFO")
    is_production = settings.current_environment == Environment.PRD

    logger.add(
        sys.stdout,
        format=CONSOLE_FORMAT,
        level=logging.DEBUG if settings.current_environment == Environment.DEV else logging.INFO,
        colorize=True,
        enqueue=True,
        filter=correlation_filter,
    )

    logger.add(
        LOG_FILE,
        format=LOG_FORMAT,
        level=log_level,
        rotation="10 MB",
        retention="3 months",
        compression="gz",
        enqueue=True,
        filter=correlation_filter,
        backtrace=True,
        # Tracebacks with variable values could leak credentials
        diagnose=not is_production,
    )

    logger.add(
        SECURITY_LOG_FILE,
        level=logging.WARNING,
        rotation="10 MB",
        retention="3 months",
        compression="gz",
        enqueue=True,
        serialize=True,
        filter=security_filter,
    )

    logger.info(
        f"Logger initialized | Environment: {settings.current_environment.value} | "
        f"Level: {log_level}"
    )


def configure_uvicorn_logging():
    """Route uvicorn's standard library loggers through loguru, after setup_logger()"""
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in logging.root.manager.loggerDict.keys():
        if name.startswith("uvicorn"):
            logging.getLogger(name).handlers = [InterceptHandler()]
            logging.getLogger(name).propagate = False


def shutdown_logger():
    """Flush queued records, called at application shutdown"""
    logger.info("Shutting down logger...")
    logger.complete()
