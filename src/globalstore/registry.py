"""
Tenant Registry
Authoritative table of tenant name -> container and global-action allow-list
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional

from .container import REPLACE_ACTION_TYPE, ContainerProtocol, Reducer
from .errors import DispatchFailure, DuplicateTenantError, ReducerReplacementError, UnknownTenantError

logger = logging.getLogger(__name__)

PLATFORM = "Platform"
ALLOW_ALL = "*"

EVENT_REGISTERED = "registered"
EVENT_REPLACED = "replaced"
EVENT_REDUCER_REPLACED = "reducer_replaced"
EVENT_UNREGISTERED = "unregistered"

RegistryEventHandler = Callable[[str, str, Optional["TenantEntry"], Optional["TenantEntry"]], None]


@dataclass(frozen=True)
class TenantEntry:
    """One registered tenant; replaced wholesale, never mutated in place"""
    name: str
    container: ContainerProtocol
    global_actions: FrozenSet[str] = frozenset()
    registered_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def accepts(self, action_type: str) -> bool:
        """Whether another tenant may dispatch ``action_type`` to this tenant"""
        return ALLOW_ALL in self.global_actions or action_type in self.global_actions


def _normalize_actions(actions: Optional[Iterable[str]]) -> FrozenSet[str]:
    if actions is None:
        return frozenset()
    if isinstance(actions, str):
        actions = [actions]
    return frozenset(a for a in actions if a)


class TenantRegistry:
    """
    Registry of tenant containers

    Iteration order is Platform first, then the remaining tenants in
    registration order. Replacing a tenant keeps its position.
    """

    def __init__(self, lock: Optional[threading.RLock] = None):
        self._lock = lock or threading.RLock()
        self._entries: Dict[str, TenantEntry] = {}
        self._event_handlers: List[RegistryEventHandler] = []

    def add_event_handler(self, handler: RegistryEventHandler) -> None:
        """Add handler called as handler(event, name, old_entry, new_entry)"""
        self._event_handlers.append(handler)

    def remove_event_handler(self, handler: RegistryEventHandler) -> None:
        if handler in self._event_handlers:
            self._event_handlers.remove(handler)

    def _emit_event(self, event: str, name: str, old: Optional[TenantEntry], new: Optional[TenantEntry]) -> None:
        for handler in list(self._event_handlers):
            handler(event, name, old, new)

    def register(
        self,
        name: str,
        container: Optional[ContainerProtocol],
        global_actions: Optional[Iterable[str]] = None,
        replace_container: bool = False,
        replace_reducer_only: bool = False,
        reducer: Optional[Reducer] = None
    ) -> ContainerProtocol:
        """
        Register or replace a tenant container

        Args:
            name: Tenant name
            container: Container to register (ignored for reducer-only replacement)
            global_actions: Allow-list; None keeps the existing list on replacement
            replace_container: Swap the whole container of an existing tenant
            replace_reducer_only: Swap only the reducer of the existing container
            reducer: New reducer for ``replace_reducer_only``

        Returns:
            The container now registered for ``name``

        Raises:
            DuplicateTenantError: If ``name`` exists and no replace flag is set
            ReducerReplacementError: If the container has no ``replace_reducer``
            DispatchFailure: If the new reducer fails; the old reducer stays active
        """
        if not name:
            raise ValueError("Tenant name is required")

        with self._lock:
            existing = self._entries.get(name)

            if existing is None or replace_container:
                if container is None:
                    raise ValueError(f"A container is required to register '{name}'")
                actions = _normalize_actions(global_actions)
                if existing is not None and global_actions is None:
                    actions = existing.global_actions
                entry = TenantEntry(name=name, container=container, global_actions=actions)
                self._entries[name] = entry
                if existing is None:
                    self._emit_event(EVENT_REGISTERED, name, None, entry)
                    logger.info(f"Store registered for {name}")
                else:
                    self._emit_event(EVENT_REPLACED, name, existing, entry)
                    logger.info(f"Store replaced for {name}")
                return container

            if not replace_reducer_only:
                raise DuplicateTenantError(name)

        return self._replace_reducer(existing, reducer, global_actions)

    def _replace_reducer(
        self,
        existing: TenantEntry,
        reducer: Optional[Reducer],
        global_actions: Optional[Iterable[str]]
    ) -> ContainerProtocol:
        """Swap the reducer of a registered container; its listeners run outside the lock"""
        name = existing.name
        if reducer is None:
            raise ValueError(f"A reducer is required to replace the reducer of '{name}'")
        replace = getattr(existing.container, "replace_reducer", None)
        if not callable(replace):
            raise ReducerReplacementError(name)

        try:
            replace(reducer)
        except Exception as e:
            logger.error(f"Reducer replacement failed for {name}: {e}")
            raise DispatchFailure(name, REPLACE_ACTION_TYPE, e) from e

        with self._lock:
            current = self._entries.get(name)
            if current is None or current.container is not existing.container:
                raise UnknownTenantError(name, f"Store for '{name}' changed while its reducer was replaced")
            entry = current
            if global_actions is not None:
                entry = TenantEntry(
                    name=name,
                    container=current.container,
                    global_actions=_normalize_actions(global_actions),
                    registered_at=current.registered_at
                )
                self._entries[name] = entry
            self._emit_event(EVENT_REDUCER_REPLACED, name, current, entry)
            logger.info(f"Reducer replaced for {name}")
            return entry.container

    def register_global_actions(self, name: str, actions: Optional[Iterable[str]] = None) -> TenantEntry:
        """
        Replace the allow-list of a registered tenant

        Raises:
            UnknownTenantError: If ``name`` is not registered
        """
        with self._lock:
            existing = self._entries.get(name)
            if existing is None:
                raise UnknownTenantError(name)
            entry = TenantEntry(
                name=name,
                container=existing.container,
                global_actions=_normalize_actions(actions),
                registered_at=existing.registered_at
            )
            self._entries[name] = entry
            logger.debug(f"Global actions for {name}: {sorted(entry.global_actions)}")
            return entry

    def unregister(self, name: str) -> Optional[TenantEntry]:
        """Remove a tenant; returns the removed entry or None"""
        with self._lock:
            entry = self._entries.pop(name, None)
            if entry is not None:
                self._emit_event(EVENT_UNREGISTERED, name, entry, None)
                logger.info(f"Store unregistered for {name}")
            return entry

    def lookup(self, name: str) -> Optional[TenantEntry]:
        """Entry for ``name`` or None; never raises"""
        return self._entries.get(name)

    def names(self) -> List[str]:
        """Tenant names, Platform first, then registration order"""
        with self._lock:
            names = list(self._entries)
        if PLATFORM in names:
            names.remove(PLATFORM)
            names.insert(0, PLATFORM)
        return names

    def entries(self) -> List[TenantEntry]:
        with self._lock:
            return [self._entries[name] for name in self.names() if name in self._entries]

    def is_action_allowed(self, name: str, action_type: str) -> bool:
        entry = self.lookup(name)
        return entry is not None and entry.accepts(action_type)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
