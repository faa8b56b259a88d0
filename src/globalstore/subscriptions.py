"""
Subscription Manager
Tenant, partner, Platform and global-aggregate listeners kept consistent across
tenant registration, container replacement and unregistration
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .container import ContainerProtocol
from .errors import UnregisteredPartnerError, UnregisteredTenantError
from .registry import (
    EVENT_REGISTERED,
    EVENT_REPLACED,
    EVENT_UNREGISTERED,
    PLATFORM,
    TenantEntry,
    TenantRegistry,
)
from .state import build_global_state, copy_state

logger = logging.getLogger(__name__)

StateCallback = Callable[[Any], None]
Unsubscribe = Callable[[], None]


@dataclass(eq=False)
class GlobalListenerEntry:
    """Listener on the aggregate state of every tenant"""
    source: str
    callback: StateCallback


@dataclass(eq=False)
class PartnerListenerEntry:
    """Listener on a single tenant's state (the tenant itself, a partner or Platform)"""
    source: str
    partner: str
    callback: StateCallback
    detach: Optional[Unsubscribe] = field(default=None, repr=False)


class SubscriptionManager:
    """
    Tracks listener registrations and drives notifications

    Every registered container carries one global hook that fans the aggregate
    state out to all global listeners. Partner listeners are attached directly
    to the observed container and follow it across replacement.
    """

    def __init__(self, registry: TenantRegistry, lock: Optional[threading.RLock] = None):
        self._registry = registry
        self._lock = lock or threading.RLock()
        self._global_listeners: List[GlobalListenerEntry] = []
        self._partner_listeners: List[PartnerListenerEntry] = []
        self._global_hooks: Dict[str, Unsubscribe] = {}
        registry.add_event_handler(self._on_registry_event)

        for entry in registry.entries():
            self._attach_global_hook(entry)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def subscribe(self, source: str, callback: StateCallback) -> Unsubscribe:
        """
        Subscribe to ``source``'s own state

        Raises:
            UnregisteredTenantError: If ``source`` has no registered store
        """
        entry = self._registry.lookup(source)
        if entry is None:
            raise UnregisteredTenantError(source, f"Store for {source} is not registered")
        return self._add_partner_listener(source, entry, callback)

    def subscribe_to_platform_state(self, source: str, callback: StateCallback) -> Unsubscribe:
        """
        Subscribe to Platform state changes

        Raises:
            UnregisteredTenantError: If the Platform store has not been created
        """
        entry = self._registry.lookup(PLATFORM)
        if entry is None:
            raise UnregisteredTenantError(PLATFORM, f"{source} cannot subscribe: Platform store is not registered")
        return self._add_partner_listener(source, entry, callback)

    def subscribe_to_partner_state(self, source: str, partner: str, callback: StateCallback) -> Unsubscribe:
        """
        Subscribe to a partner's state changes

        Raises:
            UnregisteredPartnerError: If ``partner`` is not registered yet
        """
        entry = self._registry.lookup(partner)
        if entry is None:
            raise UnregisteredPartnerError(source, partner)
        return self._add_partner_listener(source, entry, callback)

    def subscribe_to_global_state(self, source: str, callback: StateCallback) -> Unsubscribe:
        """Subscribe to any change of any registered container, current or future"""
        if not callable(callback):
            raise TypeError("callback must be callable")
        listener = GlobalListenerEntry(source=source, callback=callback)
        with self._lock:
            self._global_listeners.append(listener)
        logger.debug(f"{source} subscribed to global state")

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._global_listeners:
                    self._global_listeners.remove(listener)

        return unsubscribe

    @property
    def global_listener_count(self) -> int:
        return len(self._global_listeners)

    def partner_listener_count(self, partner: Optional[str] = None) -> int:
        return len([l for l in self._partner_listeners if partner is None or l.partner == partner])

    # ------------------------------------------------------------------
    # Partner listeners
    # ------------------------------------------------------------------

    def _add_partner_listener(self, source: str, entry: TenantEntry, callback: StateCallback) -> Unsubscribe:
        if not callable(callback):
            raise TypeError("callback must be callable")
        listener = PartnerListenerEntry(source=source, partner=entry.name, callback=callback)
        with self._lock:
            self._partner_listeners.append(listener)
            self._attach_partner_listener(listener, entry.container)
        logger.debug(f"{source} subscribed to {entry.name} state")

        def unsubscribe() -> None:
            with self._lock:
                if listener not in self._partner_listeners:
                    return
                self._partner_listeners.remove(listener)
                self._detach_partner_listener(listener)

        return unsubscribe

    def _attach_partner_listener(self, listener: PartnerListenerEntry, container: ContainerProtocol) -> None:
        def on_change() -> None:
            listener.callback(copy_state(container.get_state()))

        listener.detach = container.subscribe(on_change)

    @staticmethod
    def _detach_partner_listener(listener: PartnerListenerEntry) -> None:
        detach, listener.detach = listener.detach, None
        if detach is not None:
            detach()

    # ------------------------------------------------------------------
    # Global listeners
    # ------------------------------------------------------------------

    def _attach_global_hook(self, entry: TenantEntry) -> None:
        self._global_hooks[entry.name] = entry.container.subscribe(self._invoke_global_listeners)

    def _detach_global_hook(self, name: str) -> None:
        detach = self._global_hooks.pop(name, None)
        if detach is not None:
            detach()

    def _invoke_global_listeners(self) -> None:
        with self._lock:
            listeners = list(self._global_listeners)
        for listener in listeners:
            # skip listeners unsubscribed by an earlier callback in this round
            if listener not in self._global_listeners:
                continue
            listener.callback(build_global_state(self._registry))

    # ------------------------------------------------------------------
    # Registry events
    # ------------------------------------------------------------------

    def _on_registry_event(self, event: str, name: str,
                           old: Optional[TenantEntry], new: Optional[TenantEntry]) -> None:
        with self._lock:
            if event == EVENT_REGISTERED:
                self._attach_global_hook(new)
            elif event == EVENT_REPLACED:
                self._rewire(name, new)
            elif event == EVENT_UNREGISTERED:
                self._teardown(name)

    def _rewire(self, name: str, new: TenantEntry) -> None:
        listeners = [l for l in self._partner_listeners if l.partner == name]
        self._detach_global_hook(name)
        for listener in listeners:
            self._detach_partner_listener(listener)

        self._attach_global_hook(new)
        for listener in listeners:
            self._attach_partner_listener(listener, new.container)
        logger.debug(f"Rewired {len(listeners)} listener(s) to the new {name} store")

    def _teardown(self, name: str) -> None:
        self._detach_global_hook(name)
        dropped = [l for l in self._partner_listeners if l.partner == name]
        for listener in dropped:
            self._detach_partner_listener(listener)
            self._partner_listeners.remove(listener)
        if dropped:
            logger.debug(f"Dropped {len(dropped)} listener(s) of unregistered {name}")
