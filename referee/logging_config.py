"""Structured logging for the referee.

structlog renders both its own loggers and stdlib ones (the module-level
loggers in referee.utils and referee.tournament.rounds) through one handler.
Tournament runs bind tournament_id and round as contextvars, so every line
written while a tournament is in flight carries them, including lines from
the HTTP client and from concurrently played matches of the same round.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog
from structlog.types import Processor

from referee.config import Settings

TOURNAMENT_CONTEXT_KEYS = ("tournament_id", "round", "round_name")

# Per-request chatter from the player calls; retries are logged by
# referee.utils.http_client at WARNING already.
NOISY_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "tenacity": logging.WARNING,
    "asyncio": logging.WARNING,
}


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    app_env: str = "development",
) -> None:
    """Configure structured logging.

    Args:
        log_level: Root level (DEBUG shows per-move requests and BYEs)
        json_logs: Force the JSON renderer
        app_env: "production" also selects JSON
    """
    use_json = json_logs or app_env == "production"

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if use_json:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        shared_processors.append(structlog.dev.set_exc_info)
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper()))

    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def configure_from_settings(settings: Settings) -> None:
    """configure_logging driven by REFEREE_LOG_LEVEL / JSON_LOGS / APP_ENV."""
    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.json_logs,
        app_env=settings.app_env,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Usage:
        logger = get_logger(__name__)
        logger.info("tournament_match", player1="Bot1", winner="Bot1")
    """
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def bind_round(round_number: int, name: str) -> None:
    """Tag subsequent lines of the current run with the round being played."""
    bind_context(round=round_number, round_name=name)


@contextmanager
def tournament_context(tournament_id: str) -> Iterator[str]:
    """
    Bind tournament_id for the duration of one run.

    The round keys bound by bind_round inside the block are dropped on exit
    as well, whether the run completed, failed or was cancelled.
    """
    bind_context(tournament_id=tournament_id)
    try:
        yield tournament_id
    finally:
        unbind_context(*TOURNAMENT_CONTEXT_KEYS)
