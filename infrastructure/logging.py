"""structlog setup shared by the API, uvicorn and library loggers.

Every event carries the service name and storage backend. Request handlers
bind ``request_id``, ``method`` and ``path`` (and ``user_id`` once the caller
is resolved) through contextvars, so logs from use cases and adapters deep in
a request can be correlated without passing a logger around.
"""

import logging
import logging.handlers
import sys
import uuid

import structlog

from infrastructure.config import Settings, settings

# Drivers that log every heartbeat or connection check at INFO/DEBUG
_CHATTY_LOGGERS = ("pymongo", "motor", "fsspec", "multipart")


def _service_fields(config: Settings) -> structlog.types.Processor:
    static = {"service": config.app_name, "storage_backend": config.storage_backend}

    def add_service_fields(
        _logger: object,
        _method: str,
        event_dict: structlog.types.EventDict,
    ) -> structlog.types.EventDict:
        for key, value in static.items():
            event_dict.setdefault(key, value)
        return event_dict

    return add_service_fields


def setup_logging(config: Settings = settings) -> None:
    """Route structlog and stdlib logging to stdout and a daily-rotated file."""
    config.log_dir.mkdir(parents=True, exist_ok=True)
    log_file = config.log_dir / f"{config.app_env}.log"

    common_processors = [
        structlog.contextvars.merge_contextvars,
        _service_fields(config),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    renderer = (
        structlog.dev.ConsoleRenderer()
        if config.app_env == "development"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            *common_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=common_processors,
        processor=renderer,
    )

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    file_handler = logging.handlers.TimedRotatingFileHandler(
        log_file,
        when="midnight",
        backupCount=7,
        utc=True,
    )
    file_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [stream_handler, file_handler]

    root_logger = logging.getLogger()
    root_logger.handlers = handlers
    root_logger.setLevel(config.log_level.upper())

    # uvicorn.access is replaced by the request_completed event
    for name in ("uvicorn", "uvicorn.error", "fastapi"):
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = handlers
        stdlib_logger.propagate = False
    logging.getLogger("uvicorn.access").disabled = True

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_request_context(method: str, path: str, request_id: str | None = None) -> str:
    """Start a fresh log context for one request and return its id."""
    request_id = request_id or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, method=method, path=path)
    return request_id


def bind_caller(user_id: str) -> None:
    structlog.contextvars.bind_contextvars(user_id=user_id)
