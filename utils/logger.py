"""
Logging setup
Rich console output plus an optional file under logs/
"""
import logging
from pathlib import Path
import sys
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler


console = Console(stderr=True)

FILE_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DIR = Path(__file__).resolve().parent.parent / "logs"


def _level(value: Union[int, str]) -> int:
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(str(value or "INFO").upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(
    name: str = "",
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    use_rich: bool = True,
) -> logging.Logger:
    """
    Attach handlers to `name` (the root logger by default) once.

    Module loggers created with ``logging.getLogger(__name__)`` propagate
    here, so configuring the root covers generation, pipeline and store logs.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_level(level))
    if logger.handlers:
        return logger

    if use_rich:
        handler: logging.Handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(FILE_FORMAT))
    logger.addHandler(handler)

    if log_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(LOG_DIR / log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)
    return logger


def configure_from_settings() -> logging.Logger:
    """Configure the root logger from ``LOG_*`` settings."""
    from config import get_settings

    settings = get_settings().logging
    return setup_logger("", level=settings.level, log_file=settings.file, use_rich=settings.use_rich)
