# utils/logging.py
import logging
import logging.config
from datetime import datetime
from pathlib import Path

from moodgauge.config.resolvers import resolve_log_dir

def setup_logging(
    log_dir: str | Path | None = None,
    console: bool = True,
    level: str = "INFO",
    quiet_console: bool = False,
    console_level: str | None = None,
) -> tuple:
    """
    Setup logging with a per-run file handler and optional console output.

    Args:
        log_dir: Directory for log files (defaults to the user log dir)
        console: Whether to enable console logging
        level: Level for the package logger
        quiet_console: If True, only errors reach the console (via the summary logger)
        console_level: Separate level for console (defaults to level)

    Returns:
        (logger, summary_logger)
    """
    name = "moodgauge"

    log_dir = resolve_log_dir(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = str(log_dir / f"{name}_{ts}.log")

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "format": "{asctime} {levelname:<7} {name} - {message}",
                "style": "{",
            },
        },
        "handlers": {
            "file": {
                "class": "logging.FileHandler",
                "formatter": "plain",
                "filename": log_path,
                "encoding": "utf-8",
                "mode": "w",
                "level": "DEBUG",
            }
        },
        "loggers": {
            name: {
                "level": level,
                "handlers": ["file"],
                "propagate": False,
            },
            # warnings captured by captureWarnings (AmbiguousContextWarning etc.)
            "py.warnings": {
                "level": "WARNING",
                "handlers": ["file"],
                "propagate": False,
            },
        },
        "root": {"handlers": []},
    }

    logging.config.dictConfig(config)
    logging.captureWarnings(True)

    logger = logging.getLogger(name)
    console_formatter = logging.Formatter("{levelname:<7} {message}", style="{")

    summary_logger = logging.getLogger(f"{name}.summary")
    summary_logger.setLevel(logging.INFO)
    summary_logger.propagate = False
    for handler in list(summary_logger.handlers):
        summary_logger.removeHandler(handler)
        handler.close()

    fh_summary = logging.FileHandler(log_path, encoding="utf-8", mode="a")
    fh_summary.setLevel(logging.INFO)
    fh_summary.setFormatter(logging.Formatter("{asctime} SUMMARY - {message}", style="{"))
    summary_logger.addHandler(fh_summary)

    if console and not quiet_console:
        console_handler = logging.StreamHandler()
        console_level = console_level or level
        console_handler.setLevel(getattr(logging, console_level.upper()))
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)
        summary_logger.addHandler(console_handler)
    elif console and quiet_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.ERROR)
        console_handler.setFormatter(console_formatter)
        summary_logger.addHandler(console_handler)

    logger.info("Logging initialised. File: %s", log_path)
    return logger, summary_logger
