# infra/logging_config.py
from __future__ import annotations
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from infra.path import user_data_dir
from infra.tracing import TraceIdLogFilter


def setup_logging(log_dir: Path | None = None, level: int = logging.INFO) -> Path:
    """
    Configure logging for analytics runs.
    Logs go to the per-user data directory unless a directory is given.
    Returns the log file path.
    """
    log_dir = Path(log_dir) if log_dir is not None else user_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / "analytics.log"

    logger = logging.getLogger()
    logger.setLevel(level)

    # Repeated setup must not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # File handler (rotating)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=1_000_000,  # 1 MB per file
        backupCount=5,
        encoding="utf-8",
    )
    trace_filter = TraceIdLogFilter()
    file_handler.addFilter(trace_filter)
    file_formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] trace=%(trace_id)s %(name)s - %(message)s"
    )
    file_handler.setFormatter(file_formatter)
    logger.addHandler(file_handler)

    console = logging.StreamHandler()
    console.addFilter(trace_filter)
    console.setFormatter(logging.Formatter("%(levelname)s [trace=%(trace_id)s]: %(message)s"))
    logger.addHandler(console)

    logger.info("Logging initialized. Log file at %s", log_file)
    return log_file


__all__ = ["setup_logging"]
