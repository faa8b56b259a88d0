"""
Console logger sink for the logging chain
"""

import logging
from typing import Any, Dict

from .chain import AbstractLogger

console = logging.getLogger("globalstore.console")


class ConsoleLogger(AbstractLogger):
    """Terminal sink writing chain events into the stdlib logging hierarchy"""

    def __init__(self, debug_mode: bool = False, logger_identity: str = "ConsoleLogger"):
        super().__init__(logger_identity)
        self.debug_mode = debug_mode

    def process_event(self, source: str, event_name: str, properties: Dict[str, Any]) -> None:
        level = logging.INFO if self.debug_mode else logging.DEBUG
        console.log(level, f"[{source}] {event_name} {properties}")

    def process_exception(self, source: str, error: BaseException, properties: Dict[str, Any]) -> None:
        console.error(
            f"[{source}] {type(error).__name__}: {error} {properties}",
            exc_info=(type(error), error, error.__traceback__) if self.debug_mode else None
        )
