"""
Logging chain module initialization
"""

from .chain import AbstractLogger, NullLogger
from .console_logger import ConsoleLogger

__all__ = [
    "AbstractLogger",
    "NullLogger",
    "ConsoleLogger"
]
