"""
Action Router
Routes an action to the dispatching tenant (local), to every other tenant that
allows it (global), or to both, in deterministic registry order
"""

import logging
from typing import Callable, List

from .actions import Action, ActionLike, to_action
from .errors import DispatchFailure, UnknownTenantError
from .loggers.chain import AbstractLogger
from .registry import TenantEntry, TenantRegistry

logger = logging.getLogger(__name__)

SOURCE = "GlobalStore.ActionRouter"

SCOPE_LOCAL = "local"
SCOPE_GLOBAL = "global"


class ActionRouter:
    """Dispatches actions to tenant containers and reports through the logging chain"""

    def __init__(self, registry: TenantRegistry, chain_logger: Callable[[], AbstractLogger]):
        self._registry = registry
        self._chain_logger = chain_logger

    def dispatch_local(self, source: str, action: ActionLike) -> None:
        """
        Dispatch ``action`` on ``source``'s own container only

        Raises:
            UnknownTenantError: If ``source`` is not registered
            DispatchFailure: If the container fails while processing the action
        """
        action = to_action(action)
        entry = self._registry.lookup(source)
        if entry is None:
            error = UnknownTenantError(source, f"Cannot dispatch locally: store for {source} is not registered")
            self._chain_logger().log_exception(SOURCE, error, self._properties(SCOPE_LOCAL, source, action))
            raise error

        self._log_start(SCOPE_LOCAL, source, action, [source])
        self._dispatch_to(entry, SCOPE_LOCAL, source, action)
        self._log_complete(SCOPE_LOCAL, source, action, [source])

    def dispatch_global(self, source: str, action: ActionLike) -> List[str]:
        """
        Fan ``action`` out to every other tenant whose allow-list accepts it

        Tenants are visited Platform first, then in registration order. The
        source container is never dispatched to. The first failing tenant aborts
        the remaining fan-out.

        Returns:
            Names of the tenants the action was dispatched to

        Raises:
            DispatchFailure: If a target container fails while processing the action
        """
        action = to_action(action)
        targets = [
            name for name in self._registry.names()
            if name != source and self._registry.is_action_allowed(name, action.type)
        ]
        self._log_start(SCOPE_GLOBAL, source, action, targets)

        delivered: List[str] = []
        for name in targets:
            # re-read: an earlier listener may have replaced or removed this tenant
            entry = self._registry.lookup(name)
            if entry is None or not entry.accepts(action.type):
                continue
            self._dispatch_to(entry, SCOPE_GLOBAL, source, action)
            delivered.append(name)

        self._log_complete(SCOPE_GLOBAL, source, action, delivered)
        return delivered

    def dispatch_both(self, source: str, action: ActionLike) -> List[str]:
        """Local dispatch, then global fan-out of the same action"""
        action = to_action(action)
        self.dispatch_local(source, action)
        return self.dispatch_global(source, action)

    def _dispatch_to(self, entry: TenantEntry, scope: str, source: str, action: Action) -> None:
        try:
            entry.container.dispatch(action)
        except DispatchFailure:
            # raised and reported by a nested dispatch
            raise
        except Exception as e:
            failure = DispatchFailure(entry.name, action.type, e)
            properties = self._properties(scope, source, action)
            properties["target"] = entry.name
            self._chain_logger().log_exception(SOURCE, failure, properties)
            logger.warning(f"{failure}")
            raise failure from e

    @staticmethod
    def _properties(scope: str, source: str, action: Action) -> dict:
        return {"scope": scope, "source": source, "action_type": action.type}

    def _log_start(self, scope: str, source: str, action: Action, targets: List[str]) -> None:
        properties = self._properties(scope, source, action)
        properties["targets"] = list(targets)
        self._chain_logger().log_event(SOURCE, "DispatchStart", properties)

    def _log_complete(self, scope: str, source: str, action: Action, targets: List[str]) -> None:
        properties = self._properties(scope, source, action)
        properties["targets"] = list(targets)
        self._chain_logger().log_event(SOURCE, "DispatchComplete", properties)
