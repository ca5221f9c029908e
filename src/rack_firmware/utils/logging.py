"""Logging setup for the rack firmware service."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Union

from rack_firmware.config.settings import Settings

ROOT_LOGGER = "rack_firmware"

# Third-party loggers that log every artifact request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


def resolve_level(level: Union[int, str]) -> int:
    """Turn a level name ("debug", "INFO") or number into a logging level.

    Raises:
        ValueError: If the name is not a known logging level
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def setup_logger(
    name: str = ROOT_LOGGER,
    log_file: str = "./logs/rack_firmware.log",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 3,
    level: Union[int, str] = logging.INFO,
) -> logging.Logger:
    """Attach a rotating file handler and a console handler to ``name``.

    Service modules log to children of this logger (``rack_firmware.download``,
    ``rack_firmware.dispatch``, ...) and reach these handlers by propagation.
    Calling it again only updates the level.

    Args:
        name: Logger name
        log_file: Path to log file (parent directory is created)
        max_bytes: Max size before rotation
        backup_count: Number of rotated files to keep
        level: Logging level, as a number or a level name

    Returns:
        Configured logger instance
    """
    level = resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
    file_handler = RotatingFileHandler(
        log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    console_handler = logging.StreamHandler()
    for handler in (file_handler, console_handler):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def configure_logging(settings: Settings) -> logging.Logger:
    """Configure service logging from settings.

    Per-request logs of the HTTP client are capped at WARNING unless the
    service itself runs at DEBUG; the download service logs its own
    per-file milestones.
    """
    level = resolve_level(settings.log_level)
    logger = setup_logger(ROOT_LOGGER, settings.log_file, level=level)

    client_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(client_level)

    return logger
