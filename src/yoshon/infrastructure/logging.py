"""Logger factory shared by the HTTP, CLI and persistence layers."""

import logging
import os
from typing import Optional


_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _coerce_level(value: Optional[str]) -> int:
    if isinstance(value, str):
        return _LEVELS.get(value.upper().strip(), logging.INFO)
    return logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger under the ``yoshon`` namespace.

    - Honors LOG_LEVEL (default INFO) and LOG_FILE (optional path).
    - Configures handlers once per logger name.
    """
    logger = logging.getLogger(f"yoshon.{name}")
    if getattr(logger, "_yoshon_configured", False):
        return logger

    level = _coerce_level(os.environ.get("LOG_LEVEL", "INFO"))
    logger.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    sh = logging.StreamHandler()
    sh.setLevel(level)
    sh.setFormatter(formatter)
    logger.addHandler(sh)

    log_file = os.environ.get("LOG_FILE")
    if log_file:
        try:
            fh = logging.FileHandler(log_file, encoding="utf-8")
        except OSError:
            logger.warning("LOG_FILE %s could not be opened; logging to stderr only", log_file)
        else:
            fh.setLevel(level)
            fh.setFormatter(formatter)
            logger.addHandler(fh)

    logger.propagate = False
    setattr(logger, "_yoshon_configured", True)
    return logger
