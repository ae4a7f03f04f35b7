"""Application logging.

Standard library handlers write to stdout and to rotating files under
``LOG_DIR``; structlog renders each event and merges request-scoped context
(``request_id``, ``user_id``) bound through contextvars. Production renders
JSON lines, every other environment the console renderer.
"""

import logging
import logging.handlers
import sys
from pathlib import Path

import structlog

from shared import config

_MAX_LOG_BYTES = 10 * 1024 * 1024
_BACKUP_COUNT = 5
_QUIET_LOGGERS = ("asyncio", "urllib3", "sqlalchemy.engine", "httpx", "uvicorn.access")

_configured = False


def _add_service(logger, method_name, event_dict):
    event_dict.setdefault("service", config.APP_NAME)
    event_dict.setdefault("env", config.ENV)
    return event_dict


def _rotating_handler(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path, maxBytes=_MAX_LOG_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8"
    )
    handler.setLevel(level)
    return handler


def _install_handlers(level: str, log_dir: str) -> None:
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [
        console,
        _rotating_handler(directory / "storefront.log", level),
        _rotating_handler(directory / "storefront_error.log", logging.ERROR),
    ]

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _renderer(json_output: bool):
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=config.ENV == "development",
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=2),
    )


def _configure_structlog(json_output: bool) -> None:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _add_service,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
    ]
    if json_output:
        processors.append(structlog.processors.format_exc_info)
    processors.append(_renderer(json_output))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(level: str | None = None, log_dir: str | None = None) -> None:
    """Install handlers and structlog processors once per process."""
    global _configured
    if _configured:
        return
    _install_handlers(level or config.LOG_LEVEL, log_dir or config.LOG_DIR)
    _configure_structlog(config.LOG_JSON)
    _configured = True
