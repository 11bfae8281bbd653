"""structlog setup shared by the API server and scripts."""

import logging

import structlog


def configure_logging(level: str | int = "INFO") -> None:
    """Configure structlog with leveled, timestamped console output.

    Args:
        level: Level name ("DEBUG", "INFO", ...) or logging level number
    """
    if isinstance(level, str):
        level_number = logging.getLevelName(level.upper())
        if not isinstance(level_number, int):
            raise ValueError(f"Unknown log level: {level}")
    else:
        level_number = level

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_number),
    )
