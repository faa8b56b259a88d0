"""
Action Logger Middleware
Logs every dispatched action and its impact on the container state through the logging chain
"""

import copy
import logging
import time
from typing import Callable, Optional

from ..actions import Action, to_action
from ..container import Container, Dispatch
from ..loggers.chain import AbstractLogger

logger = logging.getLogger(__name__)

SOURCE = "GlobalStore.ActionLogger"


class ActionLogger:
    """Creates container middlewares that report action dispatch to a logger chain"""

    def __init__(self, chain_logger: Optional[AbstractLogger] = None,
                 debug_mode_checker: Optional[Callable[[], bool]] = None):
        self._logger = chain_logger
        self._debug_mode_checker = debug_mode_checker or (lambda: False)

    def set_logger(self, chain_logger: Optional[AbstractLogger]) -> None:
        self._logger = chain_logger

    def create_middleware(self):
        """Middleware factory compatible with ``create_container``"""
        def middleware(container: Container) -> Callable[[Dispatch], Dispatch]:
            def wrap(next_dispatch: Dispatch) -> Dispatch:
                def dispatch(action):
                    action = to_action(action)
                    if not self._is_logging_allowed(action):
                        return next_dispatch(action)

                    started = time.perf_counter()
                    old_state = copy.deepcopy(container.get_state())
                    self._log_dispatch_start(action)
                    try:
                        result = next_dispatch(action)
                    except Exception as e:
                        self._log_dispatch_failure(action, started, e)
                        raise
                    self._log_dispatch_complete(action, started, old_state, copy.deepcopy(container.get_state()))
                    return result
                return dispatch
            return wrap
        return middleware

    def _is_logging_allowed(self, action: Action) -> bool:
        if self._logger is None:
            return False
        if action.log_enabled is not None:
            return action.log_enabled
        return bool(self._debug_mode_checker())

    def _log_dispatch_start(self, action: Action) -> None:
        self._logger.log_event(SOURCE, "ActionDispatchStart", {
            "action_type": action.type,
            "payload": action.payload
        })

    def _log_dispatch_complete(self, action: Action, started: float, old_state, new_state) -> None:
        self._logger.log_event(SOURCE, "ActionDispatchComplete", {
            "action_type": action.type,
            "duration_ms": round((time.perf_counter() - started) * 1000, 3),
            "old_state": old_state,
            "new_state": new_state
        })

    def _log_dispatch_failure(self, action: Action, started: float, error: Exception) -> None:
        logger.debug(f"Action {action.type} failed: {error}")
        self._logger.log_exception(SOURCE, error, {
            "event": "ActionDispatchFailure",
            "action_type": action.type,
            "duration_ms": round((time.perf_counter() - started) * 1000, 3)
        })
