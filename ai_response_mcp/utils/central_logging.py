"""
Central Logging
===============
Console output always goes to stderr: on the stdio transport stdout carries
the JSON-RPC stream.

With a log directory configured:
- all.log, errors.log
- sandbox.log, fs.log, dispatch.log, mcp.log, models.log, http.log, system.log
"""
import logging
import sys
from functools import lru_cache
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

# Config
FMT = "%(asctime)s|%(levelname)-8s|%(name)-25s|%(message)s"
FMT_DETAIL = "%(asctime)s|%(levelname)-8s|%(name)-25s|%(filename)s:%(lineno)d|%(message)s"
DATE_FMT = "%Y-%m-%d %H:%M:%S"
MAX_BYTES, BACKUP = 10 * 1024 * 1024, 5
PREFIX = "ai_response"
CATEGORIES = ("sandbox", "fs", "dispatch", "mcp", "models", "http", "system")

# State
_init = {"central": False}


class ColorFormatter(logging.Formatter):
    """Formatter with ANSI colors for console."""
    C = {10: '\033[36m', 20: '\033[32m', 30: '\033[33m', 40: '\033[31m', 50: '\033[35m'}
    R = '\033[0m'

    def format(self, r):
        return f"{self.C.get(r.levelno, '')}{super().format(r)}{self.R}"


@lru_cache(maxsize=32)
def _handler(path: str, level: int = logging.DEBUG) -> RotatingFileHandler:
    """Cached rotating file handler factory."""
    h = RotatingFileHandler(path, maxBytes=MAX_BYTES, backupCount=BACKUP, encoding='utf-8')
    h.setLevel(level)
    h.setFormatter(logging.Formatter(FMT_DETAIL, DATE_FMT))
    return h


def _parse_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def setup_central_logging(
    console_level: Union[int, str] = logging.INFO,
    log_dir: Optional[Union[str, Path]] = None,
    enable_console: bool = True,
) -> None:
    """Initialize central logging. Safe to call more than once."""
    if _init["central"]:
        return

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()

    if enable_console:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(_parse_level(console_level))
        formatter = ColorFormatter(FMT, DATE_FMT) if sys.stderr.isatty() else logging.Formatter(FMT, DATE_FMT)
        console.setFormatter(formatter)
        root.addHandler(console)

    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        root.addHandler(_handler(str(directory / "all.log")))
        root.addHandler(_handler(str(directory / "errors.log"), logging.ERROR))
        for name in CATEGORIES:
            logger = logging.getLogger(f"{PREFIX}.{name}")
            logger.addHandler(_handler(str(directory / f"{name}.log")))
            logger.propagate = True

    for name in ("uvicorn", "uvicorn.access", "fastapi"):
        logging.getLogger(name).propagate = True
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    _init["central"] = True
    logging.getLogger(f"{PREFIX}.system").info(f"Logging ready | console={enable_console} | dir={log_dir or '-'}")


def get_logger(name: str) -> logging.Logger:
    """Get logger with ai_response prefix."""
    return logging.getLogger(name if name.startswith(f"{PREFIX}.") else f"{PREFIX}.{name}")
