"""
State snapshots handed out to tenants
Every value leaving the coordinator is a deep, structurally independent copy.
"""

import copy
from typing import Any, Dict

from .registry import PLATFORM, TenantRegistry


def copy_state(state: Any) -> Any:
    """Deep copy so callers cannot mutate coordinator-held state"""
    return copy.deepcopy(state)


def build_global_state(registry: TenantRegistry) -> Dict[str, Any]:
    """
    Aggregate snapshot of every registered tenant

    Format::

        {
            "Platform": {...platform state, or {} when unregistered or None},
            "<tenant>": {...tenant state},
        }
    """
    global_state: Dict[str, Any] = {PLATFORM: {}}
    for entry in registry.entries():
        state = copy_state(entry.container.get_state())
        if entry.name == PLATFORM and state is None:
            state = {}
        global_state[entry.name] = state
    return global_state
