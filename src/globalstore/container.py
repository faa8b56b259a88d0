"""
State Container
Minimal reducer-driven container used for every tenant store.
The coordinator only relies on the ContainerProtocol surface.
"""

import logging
from typing import Any, Callable, List, Optional, Protocol, Sequence

from .actions import Action, ActionLike, to_action

logger = logging.getLogger(__name__)

Reducer = Callable[[Any, Action], Any]
Listener = Callable[[], None]
Dispatch = Callable[[ActionLike], Any]
Middleware = Callable[["Container"], Callable[[Dispatch], Dispatch]]

INIT_ACTION_TYPE = "@@globalstore/INIT"
REPLACE_ACTION_TYPE = "@@globalstore/REPLACE"


class ContainerProtocol(Protocol):
    """Surface a tenant container must expose to be registered"""

    def dispatch(self, action: ActionLike) -> Any:
        ...

    def get_state(self) -> Any:
        ...

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        ...


class Container:
    """
    Reducer-driven state container

    Dispatch is synchronous: the reducer runs, then every listener subscribed at
    the start of the dispatch is notified before ``dispatch`` returns.
    """

    def __init__(self, reducer: Reducer, initial_state: Any = None,
                 middlewares: Optional[Sequence[Middleware]] = None):
        if not callable(reducer):
            raise TypeError("reducer must be callable")
        self._reducer = reducer
        self._state = initial_state
        self._listeners: List[Listener] = []
        self._is_dispatching = False

        self._state = self._reduce(Action(type=INIT_ACTION_TYPE))
        self._dispatch: Dispatch = self._base_dispatch
        if middlewares:
            self._dispatch = self._apply_middlewares(middlewares)

    def _apply_middlewares(self, middlewares: Sequence[Middleware]) -> Dispatch:
        """Compose middlewares right to left so the first one sees the action first"""
        chain = [middleware(self) for middleware in middlewares]
        dispatch = self._base_dispatch
        for wrap in reversed(chain):
            dispatch = wrap(dispatch)
        return dispatch

    def _reduce(self, action: Action) -> Any:
        self._is_dispatching = True
        try:
            return self._reducer(self._state, action)
        finally:
            self._is_dispatching = False

    def _base_dispatch(self, action: ActionLike) -> Action:
        action = to_action(action)
        if self._is_dispatching:
            raise RuntimeError("Reducers may not dispatch actions")
        self._state = self._reduce(action)

        for listener in list(self._listeners):
            listener()
        return action

    def dispatch(self, action: ActionLike) -> Any:
        """Run ``action`` through the middleware pipeline and the reducer"""
        return self._dispatch(to_action(action))

    def get_state(self) -> Any:
        """Current state (live reference, callers needing isolation must copy)"""
        if self._is_dispatching:
            raise RuntimeError("get_state may not be called while the reducer is executing")
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener

        Returns:
            Idempotent unsubscribe callable
        """
        if not callable(listener):
            raise TypeError("listener must be callable")
        self._listeners.append(listener)
        subscribed = True

        def unsubscribe() -> None:
            nonlocal subscribed
            if not subscribed:
                return
            subscribed = False
            self._listeners.remove(listener)

        return unsubscribe

    def replace_reducer(self, reducer: Reducer) -> None:
        """
        Swap the reducer and re-derive state; listeners stay attached

        If the new reducer fails on the REPLACE action the previous reducer
        and state are restored before the error propagates.
        """
        if not callable(reducer):
            raise TypeError("reducer must be callable")
        if self._is_dispatching:
            raise RuntimeError("Reducers may not replace the reducer")
        previous_reducer, previous_state = self._reducer, self._state
        self._reducer = reducer
        try:
            self._state = self._reduce(Action(type=REPLACE_ACTION_TYPE))
        except Exception:
            self._reducer, self._state = previous_reducer, previous_state
            raise

        for listener in list(self._listeners):
            listener()
        logger.debug("Container reducer replaced")

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


def create_container(reducer: Reducer, middlewares: Optional[Sequence[Middleware]] = None,
                     initial_state: Any = None) -> Container:
    """Create a container with the given reducer and middleware pipeline"""
    return Container(reducer, initial_state=initial_state, middlewares=middlewares)
