"""
Diagnostics -- Injected sink for walk messages

The walker reports progress ("Loaded N commits in M ms") and anomalies
through a sink instead of a global logger, so embedding applications can
route them to a status bar, a log file, or nowhere.

Default: LoggingSink, which forwards to the standard `logging` module.
"""

import logging
from typing import List, Optional, Protocol, Tuple


class DiagnosticSink(Protocol):
    """Receives informational and error messages from a walk."""

    def info(self, message: str) -> None:
        ...

    def error(self, message: str, exc_info: Optional[BaseException] = None) -> None:
        ...


class LoggingSink:
    """Forwards diagnostics to a `logging` logger (default: 'revstream')."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("revstream")

    def info(self, message: str) -> None:
        self.logger.info(message)

    def error(self, message: str, exc_info: Optional[BaseException] = None) -> None:
        self.logger.error(message, exc_info=exc_info)


class NullSink:
    """Discards everything."""

    def info(self, message: str) -> None:
        pass

    def error(self, message: str, exc_info: Optional[BaseException] = None) -> None:
        pass


class RecordingSink:
    """Keeps messages in memory as (level, message) pairs."""

    def __init__(self):
        self.messages: List[Tuple[str, str]] = []

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def error(self, message: str, exc_info: Optional[BaseException] = None) -> None:
        self.messages.append(("error", message))

    @property
    def errors(self) -> List[str]:
        return [m for level, m in self.messages if level == "error"]

    @property
    def infos(self) -> List[str]:
        return [m for level, m in self.messages if level == "info"]
