"""Logging setup for the generator process."""

import logging
import os
from typing import Optional

LOGGER_NAME = "fstabgen"

# systemd log level names and their syslog numbers
_SYSTEMD_LEVELS = {
    "emerg": logging.CRITICAL,
    "alert": logging.CRITICAL,
    "crit": logging.CRITICAL,
    "err": logging.ERROR,
    "warning": logging.WARNING,
    "notice": logging.INFO,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}
_SYSLOG_NUMBERS = ["emerg", "alert", "crit", "err", "warning", "notice", "info", "debug"]


def level_from_environment(environ: Optional[dict] = None) -> int:
    """Pick the log level from $FSTABGEN_DEBUG or $SYSTEMD_LOG_LEVEL (default info)."""
    environ = os.environ if environ is None else environ
    if environ.get("FSTABGEN_DEBUG"):
        return logging.DEBUG
    value = (environ.get("SYSTEMD_LOG_LEVEL") or "").strip().lower()
    if value.isdigit() and int(value) < len(_SYSLOG_NUMBERS):
        value = _SYSLOG_NUMBERS[int(value)]
    return _SYSTEMD_LEVELS.get(value, logging.INFO)


def configure_logging(level: Optional[int] = None) -> logging.Logger:
    """Attach a stderr handler to the package logger.

    Safe to call more than once; the handler is only added the first time.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level_from_environment() if level is None else level)

    if getattr(logger, "_fstabgen_configured", False):
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt="%(name)s: %(message)s"))
    logger.addHandler(handler)
    setattr(logger, "_fstabgen_configured", True)
    return logger
