"""
Logging configuration for lighter_tx.

Sets up dual logging on the ``lighter_tx`` logger that every module of
the package writes to:
  - Console : INFO-level, concise format
  - File    : DEBUG-level, detailed format with timestamps, auto-rotated

Log files go to ``<project-root>/logs/`` unless another directory is given,
and rotate at 5 MB, keeping the last 5 backups.  Secrets registered with
``setup_logging`` are masked in every record before it reaches a handler.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional, Union

LOGGER_NAME = "lighter_tx"
LOG_DIR = Path(__file__).resolve().parent.parent / "logs"

_MAX_BYTES = 5 * 1024 * 1024  # 5 MB per file
_BACKUP_COUNT = 5
_MASK = "[REDACTED]"


class SecretMaskFilter(logging.Filter):
    """Replace known secret strings in the formatted message."""

    def __init__(self, secrets: Iterable[str]):
        super().__init__()
        # Hex keys may be logged with or without the 0x prefix.
        self._secrets = sorted(
            {s[2:] if s.lower().startswith("0x") else s for s in secrets if s},
            key=len,
            reverse=True,
        )

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in self._secrets:
            masked = masked.replace(secret, _MASK)
        if masked != message:
            record.msg, record.args = masked, None
        return True


def setup_logging(
    log_level: int = logging.DEBUG,
    log_dir: Optional[Union[str, Path]] = None,
    secrets: Iterable[str] = (),
) -> logging.Logger:
    """
    Configure and return the package logger.

    Parameters
    ----------
    log_level : int
        Minimum level for the *file* handler (console is always INFO).
    log_dir : str or Path, optional
        Where ``lighter_tx.log`` is written; defaults to ``LOG_DIR``.
    secrets : iterable of str
        Values (e.g. the API private key) to mask in all output.

    Returns
    -------
    logging.Logger
        The ``lighter_tx`` logger.
    """
    directory = Path(log_dir) if log_dir is not None else LOG_DIR
    directory.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)

    # Secret filters are refreshed on every call; handlers are added once.
    for old in [f for f in logger.filters if isinstance(f, SecretMaskFilter)]:
        logger.removeFilter(old)
    logger.addFilter(SecretMaskFilter(secrets))

    if logger.handlers:
        return logger

    log_file = directory / f"{LOGGER_NAME}.log"
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s.%(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter("%(levelname)-8s | %(message)s"))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    logger.debug("Logging initialised – file: %s", log_file)
    return logger
