"""
Global Store Coordinator
Process-wide facade over the tenant registry, action router and subscription
manager. Tenants obtain it through ``get_coordinator()`` at load time.
"""

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .actions import ActionLike
from .config import GlobalStoreConfig
from .container import ContainerProtocol, Middleware, Reducer, create_container
from .errors import DuplicateTenantError, GlobalStoreError
from .loggers.chain import AbstractLogger, NullLogger
from .loggers.console_logger import ConsoleLogger
from .middlewares.action_logger import ActionLogger
from .registry import ALLOW_ALL, PLATFORM, TenantRegistry
from .router import ActionRouter
from .state import build_global_state, copy_state
from .subscriptions import StateCallback, SubscriptionManager, Unsubscribe

logger = logging.getLogger(__name__)

SOURCE = "GlobalStore"


class GlobalStore:
    """
    Global store for all tenants and the Platform shell

    Each tenant keeps an isolated container. Tenants opt in to receiving actions
    from other tenants through an allow-list, and may observe their own state,
    a partner's state, the Platform state or the aggregate of all tenants.
    """

    PLATFORM = PLATFORM
    ALLOW_ALL = ALLOW_ALL

    def __init__(self, debug_mode: bool = False, chain_logger: Optional[AbstractLogger] = None,
                 config: Optional[GlobalStoreConfig] = None):
        self.config = config or GlobalStoreConfig(debug_mode=debug_mode)
        self.debug_mode = debug_mode

        self._lock = threading.RLock()
        self._registry = TenantRegistry(self._lock)
        self._subscriptions = SubscriptionManager(self._registry, self._lock)

        self._logger: AbstractLogger = NullLogger()
        if debug_mode or self.config.console_logging:
            self._logger.set_next_logger(ConsoleLogger(debug_mode, logger_identity="GlobalStore.Console"))
        if chain_logger is not None:
            self._logger.set_next_logger(chain_logger)

        self._router = ActionRouter(self._registry, lambda: self._logger)
        self._action_logger = ActionLogger(self._logger, lambda: self.debug_mode)

        logger.info(f"GlobalStore initialized (debug_mode={debug_mode})")

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def create_store(
        self,
        tenant: str,
        reducer: Reducer,
        middlewares: Optional[Sequence[Middleware]] = None,
        global_actions: Optional[Iterable[str]] = None,
        replace_container: bool = False,
        replace_reducer: bool = False,
        initial_state: Any = None
    ) -> ContainerProtocol:
        """
        Create and register a new store for a tenant

        Args:
            tenant: Name of the tenant the store belongs to
            reducer: Root reducer ``(state, action) -> state``
            middlewares: Tenant middlewares, run after the action logger
            global_actions: Action types other tenants may dispatch here
            replace_container: Replace an already registered store
            replace_reducer: Keep the registered store but swap its root reducer
            initial_state: State the reducer starts from

        Returns:
            The store registered for ``tenant``

        Raises:
            DuplicateTenantError: If the tenant exists and no replace flag is set
            ReducerReplacementError: If the registered store cannot swap reducers
            DispatchFailure: If the replacement reducer fails; the old one stays active
        """
        with self._lock:
            existing = self._registry.lookup(tenant)
            if existing is None or replace_container:
                pipeline = [self._action_logger.create_middleware()] + list(middlewares or [])
                container = create_container(reducer, pipeline, initial_state=initial_state)
                self.register_store(tenant, container, global_actions, replace_container)
                return container

        if not replace_reducer:
            self._raise(DuplicateTenantError(tenant), {"tenant": tenant})
        # listeners notified by the REPLACE action must not run under the registry lock
        container = self._guarded(
            self._registry.register, tenant, None, global_actions,
            replace_reducer_only=True, reducer=reducer
        )
        self._logger.log_event(SOURCE, "ReducerReplaced", {"tenant": tenant})
        return container

    def register_store(
        self,
        tenant: str,
        container: ContainerProtocol,
        global_actions: Optional[Iterable[str]] = None,
        replace_container: bool = False
    ) -> None:
        """
        Register an externally created store

        Raises:
            DuplicateTenantError: If the tenant exists and ``replace_container`` is False
        """
        with self._lock:
            replaced = tenant in self._registry
            self._guarded(self._registry.register, tenant, container, global_actions,
                          replace_container=replace_container)
        self._logger.log_event(SOURCE, "StoreReplaced" if replaced else "StoreRegistered", {
            "tenant": tenant,
            "global_actions": sorted(self._registry.lookup(tenant).global_actions)
        })

    def unregister_store(self, tenant: str) -> bool:
        """Remove a tenant store and drop every listener attached to it"""
        removed = self._registry.unregister(tenant) is not None
        if removed:
            self._logger.log_event(SOURCE, "StoreUnregistered", {"tenant": tenant})
        return removed

    def register_global_actions(self, tenant: str, actions: Optional[Iterable[str]] = None) -> None:
        """
        Declare which action types other tenants may dispatch on ``tenant``

        Passing nothing clears the list; ``["*"]`` allows every action.

        Raises:
            UnknownTenantError: If ``tenant`` is not registered
        """
        entry = self._guarded(self._registry.register_global_actions, tenant, actions)
        self._logger.log_event(SOURCE, "GlobalActionsRegistered", {
            "tenant": tenant,
            "global_actions": sorted(entry.global_actions)
        })

    def registered_tenants(self) -> List[Tuple[str, List[str]]]:
        """(name, sorted allow-list) for every tenant in registry order"""
        return [(entry.name, sorted(entry.global_actions)) for entry in self._registry.entries()]

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    def get_platform_state(self) -> Any:
        """Copy of the Platform state, or None if Platform is not registered"""
        return self.get_partner_state(PLATFORM)

    def get_partner_state(self, tenant: str) -> Any:
        """Read-only copy of ``tenant``'s state, or None if it is not registered"""
        entry = self._registry.lookup(tenant)
        if entry is None:
            return None
        return copy_state(entry.container.get_state())

    def get_global_state(self) -> Dict[str, Any]:
        """Copies of every registered tenant's state keyed by tenant, Platform first"""
        return build_global_state(self._registry)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch_global_action(self, source: str, action: ActionLike) -> None:
        """Dispatch on every other tenant that declared the action type global"""
        self._router.dispatch_global(source, action)

    def dispatch_local_action(self, source: str, action: ActionLike) -> None:
        """Dispatch on ``source``'s own store"""
        self._router.dispatch_local(source, action)

    def dispatch_action(self, source: str, action: ActionLike) -> None:
        """Dispatch locally, then globally"""
        self._router.dispatch_both(source, action)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, source: str, callback: StateCallback) -> Unsubscribe:
        """Subscribe to changes of ``source``'s own state"""
        return self._guarded(self._subscriptions.subscribe, source, callback)

    def subscribe_to_platform_state(self, source: str, callback: StateCallback) -> Unsubscribe:
        """Subscribe to every Platform state change"""
        return self._guarded(self._subscriptions.subscribe_to_platform_state, source, callback)

    def subscribe_to_partner_state(self, source: str, partner: str, callback: StateCallback) -> Unsubscribe:
        """Subscribe to every state change of ``partner``"""
        return self._guarded(self._subscriptions.subscribe_to_partner_state, source, partner, callback)

    def subscribe_to_global_state(self, source: str, callback: StateCallback) -> Unsubscribe:
        """Subscribe to any change of Platform or any tenant"""
        return self._guarded(self._subscriptions.subscribe_to_global_state, source, callback)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def set_logger(self, chain_logger: AbstractLogger) -> None:
        """
        Append a logger to the coordinator's chain

        Raises:
            LoggerCycleError: If the logger is already part of the chain
        """
        self._guarded(self._logger.set_next_logger, chain_logger)
        self._action_logger.set_logger(self._logger)

    @property
    def chain_logger(self) -> AbstractLogger:
        return self._logger

    def _guarded(self, func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except GlobalStoreError as e:
            self._logger.log_exception(SOURCE, e, {"operation": func.__name__})
            raise

    def _raise(self, error: GlobalStoreError, properties: Dict[str, Any]) -> None:
        self._logger.log_exception(SOURCE, error, properties)
        raise error


# Global coordinator instance
_coordinator: Optional[GlobalStore] = None
_coordinator_lock = threading.Lock()


def get_coordinator(debug_mode: Optional[bool] = None, logger: Optional[AbstractLogger] = None) -> GlobalStore:
    """
    Get the process-wide coordinator

    The first call decides debug mode and logger; later arguments are ignored
    (use ``GlobalStore.set_logger`` to extend the chain afterwards). When
    ``debug_mode`` is None it is read from GlobalStoreConfig.
    """
    global _coordinator
    with _coordinator_lock:
        if _coordinator is None:
            config = GlobalStoreConfig.load()
            if debug_mode is None:
                debug_mode = config.debug_mode
            config.debug_mode = debug_mode
            _coordinator = GlobalStore(debug_mode=debug_mode, chain_logger=logger, config=config)
        return _coordinator


def reset_coordinator() -> None:
    """Drop the process-wide coordinator (tests and host shutdown)"""
    global _coordinator
    with _coordinator_lock:
        _coordinator = None
