"""
globalstore - state coordination for co-hosted tenant modules and the Platform shell
"""

from .actions import Action, to_action
from .container import Container, ContainerProtocol, create_container
from .coordinator import GlobalStore, get_coordinator, reset_coordinator
from .errors import (
    DispatchFailure,
    DuplicateTenantError,
    GlobalStoreError,
    LoggerCycleError,
    ReducerReplacementError,
    UnknownTenantError,
    UnregisteredPartnerError,
    UnregisteredTenantError,
)
from .loggers import AbstractLogger, ConsoleLogger, NullLogger
from .registry import ALLOW_ALL, PLATFORM

__version__ = "0.1.0"

__all__ = [
    "Action",
    "to_action",
    "Container",
    "ContainerProtocol",
    "create_container",
    "GlobalStore",
    "get_coordinator",
    "reset_coordinator",
    "GlobalStoreError",
    "DispatchFailure",
    "DuplicateTenantError",
    "LoggerCycleError",
    "ReducerReplacementError",
    "UnknownTenantError",
    "UnregisteredPartnerError",
    "UnregisteredTenantError",
    "AbstractLogger",
    "ConsoleLogger",
    "NullLogger",
    "ALLOW_ALL",
    "PLATFORM",
]
