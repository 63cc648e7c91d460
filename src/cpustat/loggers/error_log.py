import datetime
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from cpustat.settings import CpuStatSettings

# Set on handlers added by setup_error_logger, so handlers attached by an
# embedding application (or a test harness) are left alone.
_OWNED_ATTR = "_cpustat_owned"

_PROCESS_LOG_DIR: Optional[str] = None


def log_dir_name(settings: CpuStatSettings) -> str:
    """
    Directory under `logs_dir` for this process's error log.

    `settings.session_id` wins when set; otherwise one name per process,
    ``cpustat_<timestamp>_<pid>``.
    """
    global _PROCESS_LOG_DIR
    if settings.session_id:
        return settings.session_id
    if _PROCESS_LOG_DIR is None:
        ts = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        _PROCESS_LOG_DIR = f"cpustat_{ts}_{os.getpid()}"
    return _PROCESS_LOG_DIR


def _own(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _OWNED_ATTR, True)
    return handler


def owned_handlers(logger: logging.Logger):
    return [h for h in logger.handlers if getattr(h, _OWNED_ATTR, False)]


def setup_error_logger(settings: Optional[CpuStatSettings] = None) -> logging.Logger:
    """
    Configure the package error logger for cpustat.
    Writes WARN+ to stderr, and ERROR+ to a rotating file when enabled.
    """
    logger = logging.getLogger("cpustat")
    if owned_handlers(logger):
        return logger

    settings = settings or CpuStatSettings()
    logger.setLevel(logging.WARNING)

    sh = _own(logging.StreamHandler(sys.stderr))
    sh.setLevel(logging.WARNING)
    sh.setFormatter(
        logging.Formatter(
            "[%(asctime)s] %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logger.addHandler(sh)

    if settings.enable_logging:
        errors_dir = Path(settings.logs_dir) / log_dir_name(settings)
        errors_dir.mkdir(parents=True, exist_ok=True)

        fh = _own(
            RotatingFileHandler(
                errors_dir / "cpustat_errors.log",
                maxBytes=5_000_000,
                backupCount=3,
                encoding="utf-8",
            )
        )
        fh.setLevel(logging.ERROR)
        fh.setFormatter(
            logging.Formatter(
                "%(asctime)s\t%(levelname)s\t%(name)s\t%(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(fh)

    logger.propagate = False
    return logger


def get_error_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"cpustat.{name}")
