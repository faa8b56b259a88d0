"""
Logging Chain
Chain-of-responsibility loggers: each node processes an event locally and forwards it to the next node
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..errors import LoggerCycleError

logger = logging.getLogger(__name__)


class AbstractLogger(ABC):
    """
    Base logger node

    Nodes form a singly linked chain. ``set_next_logger`` always appends at the
    tail and refuses any node that is already reachable from this node.
    """

    def __init__(self, logger_identity: str):
        if not logger_identity:
            raise ValueError("logger_identity is required")
        self.logger_identity = logger_identity
        self.next_logger: Optional["AbstractLogger"] = None

    def log_event(self, source: str, event_name: str, properties: Optional[Dict[str, Any]] = None) -> None:
        """
        Log an event and forward it down the chain

        Args:
            source: Location the event is reported from
            event_name: Name of the event that occurred
            properties: Key/value properties attached to the event
        """
        properties = properties or {}
        try:
            self.process_event(source, event_name, properties)
        except Exception:
            logger.exception(f"Logger {self.logger_identity} failed to process event {event_name}")
        if self.next_logger is not None:
            self.next_logger.log_event(source, event_name, properties)

    def log_exception(self, source: str, error: BaseException, properties: Optional[Dict[str, Any]] = None) -> None:
        """
        Log an exception and forward it down the chain

        Args:
            source: Location where the error occurred
            error: The exception
            properties: Key/value properties attached to the error
        """
        properties = properties or {}
        try:
            self.process_exception(source, error, properties)
        except Exception:
            logger.exception(f"Logger {self.logger_identity} failed to process exception from {source}")
        if self.next_logger is not None:
            self.next_logger.log_exception(source, error, properties)

    def set_next_logger(self, next_logger: Optional["AbstractLogger"]) -> None:
        """
        Append a logger at the tail of the chain

        Raises:
            LoggerCycleError: If ``next_logger`` or anything chained after it is
                already part of this chain. The chain is left unmodified.
        """
        if next_logger is None:
            return
        members = self.chain_members()
        member_ids = {id(node) for node in members}
        member_identities = {node.logger_identity for node in members}

        seen = set()
        candidate = next_logger
        while candidate is not None and id(candidate) not in seen:
            if id(candidate) in member_ids or candidate.logger_identity in member_identities:
                raise LoggerCycleError(candidate.logger_identity)
            seen.add(id(candidate))
            candidate = candidate.next_logger
        if candidate is not None:
            # next_logger already loops back onto itself
            raise LoggerCycleError(candidate.logger_identity)

        members[-1].next_logger = next_logger
        logger.debug(f"Logger {next_logger.logger_identity} chained after {members[-1].logger_identity}")

    def chain_members(self) -> List["AbstractLogger"]:
        """Nodes reachable from this logger, in forwarding order"""
        members: List[AbstractLogger] = []
        seen = set()
        node: Optional[AbstractLogger] = self
        while node is not None and id(node) not in seen:
            members.append(node)
            seen.add(id(node))
            node = node.next_logger
        return members

    @abstractmethod
    def process_event(self, source: str, event_name: str, properties: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def process_exception(self, source: str, error: BaseException, properties: Dict[str, Any]) -> None:
        pass


class NullLogger(AbstractLogger):
    """Head node that records nothing; used as the coordinator's chain root"""

    def __init__(self, logger_identity: str = "GlobalStore.Root"):
        super().__init__(logger_identity)

    def process_event(self, source: str, event_name: str, properties: Dict[str, Any]) -> None:
        pass

    def process_exception(self, source: str, error: BaseException, properties: Dict[str, Any]) -> None:
        pass
