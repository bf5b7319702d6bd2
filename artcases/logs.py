from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

log = logging.getLogger("artcases")

LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def configure_logging(level: str = "INFO", console: Optional[Console] = None) -> None:
    handler = RichHandler(
        console=console,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    root = logging.getLogger("artcases")
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.propagate = False


@dataclass(frozen=True)
class LogEntry:
    message: str
    type: str = "info"
    id: Optional[str] = None


class BatchLog:
    """Log lines collected for one request and handed back with its result."""

    def __init__(self, logger: logging.Logger = log) -> None:
        self.entries: List[LogEntry] = []
        self._lock = threading.Lock()
        self._logger = logger

    def push(self, message: str, type: str = "info", steamid: Optional[str] = None) -> LogEntry:
        prefix = f"[ID {steamid}]" if steamid else "[GENERAL]"
        entry = LogEntry(f"{prefix} {message}", type, steamid)
        with self._lock:
            self.entries.append(entry)
        self._logger.log(LEVELS.get(type, logging.INFO), entry.message)
        return entry

    def info(self, message: str, steamid: Optional[str] = None) -> None:
        self.push(message, "info", steamid)

    def success(self, message: str, steamid: Optional[str] = None) -> None:
        self.push(message, "success", steamid)

    def warn(self, message: str, steamid: Optional[str] = None) -> None:
        self.push(message, "warn", steamid)

    def error(self, message: str, steamid: Optional[str] = None) -> None:
        self.push(message, "error", steamid)
