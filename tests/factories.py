"""
Test factories for reducers, loggers and pre-wired coordinators
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

from globalstore import ALLOW_ALL, PLATFORM, AbstractLogger, Action, GlobalStore


class RecordingLogger(AbstractLogger):
    """Chain node that keeps every event and exception it receives"""

    def __init__(self, logger_identity: str = "RecordingLogger"):
        super().__init__(logger_identity)
        self.events: List[Tuple[str, str, Dict[str, Any]]] = []
        self.exceptions: List[Tuple[str, BaseException, Dict[str, Any]]] = []

    def process_event(self, source: str, event_name: str, properties: Dict[str, Any]) -> None:
        self.events.append((source, event_name, properties))

    def process_exception(self, source: str, error: BaseException, properties: Dict[str, Any]) -> None:
        self.exceptions.append((source, error, properties))

    def event_names(self) -> List[str]:
        return [name for _, name, _ in self.events]


def counter_reducer(state: Optional[Dict[str, Any]], action: Action) -> Dict[str, Any]:
    state = state if state is not None else {"count": 0, "theme": "light"}
    if action.type == "INCREMENT":
        return {**state, "count": state["count"] + (action.payload or 1)}
    if action.type == "SET_THEME":
        return {**state, "theme": action.payload}
    return state


def cart_reducer(state: Optional[Dict[str, Any]], action: Action) -> Dict[str, Any]:
    state = state if state is not None else {"items": [], "theme": "light"}
    if action.type == "ADD_ITEM":
        return {**state, "items": state["items"] + [action.payload]}
    if action.type == "RESET_CART":
        return {**state, "items": []}
    if action.type == "SET_THEME":
        return {**state, "theme": action.payload}
    return state


def failing_reducer(state: Optional[Dict[str, Any]], action: Action) -> Dict[str, Any]:
    if action.type == "BOOM":
        raise ValueError("reducer exploded")
    return state if state is not None else {}


def make_platform_checkout_store(store: Optional[GlobalStore] = None) -> GlobalStore:
    """Platform accepts SET_THEME from others; Checkout accepts everything"""
    store = store or GlobalStore()
    store.create_store(PLATFORM, counter_reducer, global_actions=["SET_THEME"])
    store.create_store("Checkout", cart_reducer, global_actions=[ALLOW_ALL])
    return store


def rejecting_reducer(state: Optional[Dict[str, Any]], action: Action) -> Dict[str, Any]:
    raise ValueError(f"unsupported action {action.type}")


class ProtocolOnlyStore:
    """Externally built store exposing only dispatch, get_state and subscribe"""

    def __init__(self, state: Any = None):
        self._state = state if state is not None else {"count": 0}
        self._listeners: List[Callable[[], None]] = []

    def dispatch(self, action: Any) -> Any:
        for listener in list(self._listeners):
            listener()
        return action

    def get_state(self) -> Any:
        return self._state

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
