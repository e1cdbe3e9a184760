import logging
import sys
from pathlib import Path
from typing import Any, Iterable, Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{process.name}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def setup_logger(
    log_dir: Optional[str] = "logs",
    rotation: str = "10 MB",
    retention: str = "10 days",
    level: str = "INFO",
) -> Any:
    """
    Configures the loguru logger for the clip analysis services.

    Args:
        log_dir (str): Directory for log files. ``None`` keeps console output only.
        rotation (str): file size or time to rotate logs (e.g., "10 MB", "1 day").
        retention (str): how long to keep logs (e.g., "10 days").
        level (str): Minimum logging level for the console.

    File sinks are enqueued, so Celery worker processes can share them.
    """
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level)

    if log_dir is None:
        return logger

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    file_opts = {"rotation": rotation, "retention": retention, "enqueue": True}

    logger.add(log_path / "clip_core.log", level="DEBUG", compression="zip", **file_opts)
    # One JSON record per line: job ids, error codes, clip counts
    logger.add(log_path / "clip_core.json.log", level="INFO", serialize=True, **file_opts)
    logger.add(log_path / "error.log", level="ERROR", backtrace=True, **file_opts)

    logger.info(f"Logging to {log_path.absolute()}")
    return logger


class InterceptHandler(logging.Handler):
    """Routes stdlib ``logging`` records (uvicorn, httpx, celery) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk back to the frame that issued the stdlib call
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def intercept_stdlib_logging(names: Iterable[str] = ("uvicorn", "uvicorn.access", "httpx", "celery")) -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in names:
        logging.getLogger(name).handlers = [InterceptHandler()]
