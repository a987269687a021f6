"""Logging setup for MPC parties.

One process may host several parties, so besides the root handlers each
party can get its own rotating transcript under the same directory.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from mpc_common.core.config.models import Config

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"
_LOG_FILE = "mpc_common.log"


def _rotating_handler(path: Path, max_size_mb: int, backup_count: int, fmt: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt, datefmt=_DATEFMT))
    return handler


def _console_handler(fmt: str) -> logging.StreamHandler:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt, datefmt=_DATEFMT))
    return handler


def setup_logging(
    level: str = "INFO",
    directory: str | Path = "logs",
    max_size_mb: int = 10,
    backup_count: int = 5,
) -> None:
    """Route all records to the console and a rotating mpc_common.log.

    Replaces whatever handlers the root logger had.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        directory: Directory for log files, created if missing.
        max_size_mb: Maximum size in MB before rotation.
        backup_count: Number of rotated files to keep.
    """
    log_dir = Path(directory)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_level = getattr(logging, level.upper())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)

    for handler in (
        _console_handler(_FORMAT),
        _rotating_handler(log_dir / _LOG_FILE, max_size_mb, backup_count, _FORMAT),
    ):
        handler.setLevel(log_level)
        root_logger.addHandler(handler)

    logging.info(f"Logging initialized: level={level}, directory={log_dir}")


def setup_party_logger(
    party_name: str,
    directory: str | Path = "logs",
    max_size_mb: int = 10,
    backup_count: int = 5,
) -> logging.Logger:
    """Give a participant its own <party_name>.log transcript.

    Calling it again for the same party returns the existing logger without
    adding handlers.

    Returns:
        The participant's logger.
    """
    log_dir = Path(directory)
    log_dir.mkdir(parents=True, exist_ok=True)

    party_logger = get_party_logger(party_name)
    if party_logger.handlers:
        return party_logger

    # Records stay out of the shared root file
    party_logger.propagate = False
    party_logger.setLevel(logging.NOTSET)

    party_logger.addHandler(
        _rotating_handler(
            log_dir / f"{party_name}.log",
            max_size_mb,
            backup_count,
            f"%(asctime)s - [{party_name}] %(name)s - %(levelname)s - %(message)s",
        )
    )
    party_logger.addHandler(_console_handler(f"%(asctime)s - [{party_name}] %(levelname)s - %(message)s"))
    return party_logger


def get_party_logger(party_name: str) -> logging.Logger:
    return logging.getLogger(f"mpc_common.party.{party_name}")


def setup_logging_from_config(config: Config) -> logging.Logger | None:
    """Apply a Config's logging section.

    Returns:
        The party logger when the config names a participant and per-party
        logging is enabled, otherwise None.
    """
    settings = config.logging
    setup_logging(
        level=settings.level,
        directory=settings.directory,
        max_size_mb=settings.max_size_mb,
        backup_count=settings.backup_count,
    )

    if settings.per_party and config.name:
        return setup_party_logger(
            config.name,
            directory=settings.directory,
            max_size_mb=settings.max_size_mb,
            backup_count=settings.backup_count,
        )
    return None
