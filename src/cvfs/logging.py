import logging

import structlog

from cvfs.config import Config

# Third-party loggers that are too chatty below WARNING
NOISY_LOGGERS = ("multipart", "python_multipart", "watchfiles", "websockets", "uvicorn.error")


def setup_logging(config: Config) -> None:
    """Send structlog events through stdlib logging.

    Debug mode renders colored console lines; otherwise every event is one JSON object.
    `log_level` overrides the level implied by `debug`.
    """
    log_level = config.log_level.upper() if config.log_level else ("DEBUG" if config.debug else "INFO")
    logging.basicConfig(level=log_level, format="%(message)s")

    if not config.debug:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer() if config.debug else structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
