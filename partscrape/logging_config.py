"""Logging configuration for the crawler.

Console output is human-readable. The file handler appends one JSON object
per line to ``logs/crawl_<date>.jsonl``; every line carries the id of the
crawl run that wrote it, so several runs on the same day stay separable.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

__all__ = [
    "setup_logging",
    "get_logger",
    "log_crawl_event",
    "new_run_id",
    "LOG_DIR",
]

LOG_DIR = Path(__file__).parent.parent / "logs"

ROOT_LOGGER = "partscrape"


def new_run_id() -> str:
    return datetime.now().strftime("%Y%m%dT%H%M%S")


class JSONLFileHandler(logging.Handler):
    """Appends structured records to a daily JSONL file."""

    def __init__(self, log_dir: Path, run_id: str, prefix: str = "crawl"):
        super().__init__()
        self.log_dir = log_dir
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.run_id = run_id
        self.prefix = prefix

    def log_file(self) -> Path:
        return self.log_dir / f"{self.prefix}_{datetime.now():%Y%m%d}.jsonl"

    def emit(self, record: logging.LogRecord) -> None:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "run_id": self.run_id,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        event_type = getattr(record, "event_type", None)
        if event_type:
            entry["event_type"] = event_type
            entry.update(getattr(record, "event_data", {}))
        try:
            with open(self.log_file(), "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        except OSError:
            self.handleError(record)


class ColoredConsoleHandler(logging.StreamHandler):
    """Colors the level name when writing to a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        color = self.COLORS.get(record.levelname)
        if color and getattr(self.stream, "isatty", lambda: False)():
            text = text.replace(record.levelname, f"{color}{record.levelname}{self.RESET}", 1)
        return text


def setup_logging(
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_dir: Optional[Path] = None,
    run_id: Optional[str] = None,
) -> logging.Logger:
    """Configure the ``partscrape`` logger tree.

    Args:
        level: Console level; the JSONL file always receives DEBUG and up
        log_to_file: Also write the JSONL crawl log
        log_dir: Directory for the JSONL files (default: project logs/)
        run_id: Id stamped on every JSONL line (default: start time)
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if log_to_file else level)
    logger.handlers.clear()
    logger.propagate = False

    console = ColoredConsoleHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S"))
    logger.addHandler(console)

    if log_to_file:
        file_handler = JSONLFileHandler(log_dir or LOG_DIR, run_id or new_run_id())
        file_handler.setLevel(logging.DEBUG)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for one module, e.g. ``get_logger("scraper")`` -> ``partscrape.scraper``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_crawl_event(event_type: str, data: Dict[str, Any], level: int = logging.INFO) -> None:
    """Record a structured crawl event (``category_start``, ``product_error`` ...).

    The event lands in the JSONL log with ``data`` flattened into the entry;
    its message is ``<event_type> <category>``.
    """
    logger = logging.getLogger(f"{ROOT_LOGGER}.events")
    summary = f"{event_type} {data.get('category', '')}".strip()
    logger.log(level, summary, extra={"event_type": event_type, "event_data": data})
