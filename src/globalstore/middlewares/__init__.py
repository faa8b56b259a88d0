"""
Container middlewares
"""

from .action_logger import ActionLogger

__all__ = ["ActionLogger"]
