"""
Global Store Errors
Exception taxonomy raised by the tenant registry, router, subscriptions and logging chain
"""

from typing import Optional


class GlobalStoreError(Exception):
    """Base class for all coordination errors"""
    pass


class DuplicateTenantError(GlobalStoreError):
    """Raised when a tenant registers twice without a replace flag"""

    def __init__(self, tenant: str):
        self.tenant = tenant
        super().__init__(
            f"Store for '{tenant}' is already registered. "
            f"Pass replace_container=True to replace it"
        )


class UnknownTenantError(GlobalStoreError):
    """Raised when an operation names a tenant that was never registered"""

    def __init__(self, tenant: str, message: Optional[str] = None):
        self.tenant = tenant
        super().__init__(message or f"Tenant '{tenant}' is not registered")


class UnregisteredTenantError(UnknownTenantError):
    """Raised when subscribing to a tenant whose store does not exist yet"""
    pass


class UnregisteredPartnerError(UnregisteredTenantError):
    """Raised when subscribing to a partner that has not been loaded yet"""

    def __init__(self, source: str, partner: str):
        self.source = source
        self.partner = partner
        super().__init__(
            partner,
            f"{source} cannot subscribe to {partner}: partner store is not registered yet"
        )


class LoggerCycleError(GlobalStoreError):
    """Raised when chaining a logger would create a forwarding loop"""

    def __init__(self, logger_identity: str):
        self.logger_identity = logger_identity
        super().__init__(f"Logger '{logger_identity}' is already part of the chain")


class DispatchFailure(GlobalStoreError):
    """Raised when a tenant container fails while processing an action"""

    def __init__(self, tenant: str, action_type: str, error: BaseException):
        self.tenant = tenant
        self.action_type = action_type
        self.error = error
        super().__init__(f"Dispatch of '{action_type}' failed on '{tenant}': {error}")


class ReducerReplacementError(GlobalStoreError):
    """Raised when a registered store cannot swap its reducer in place"""

    def __init__(self, tenant: str):
        self.tenant = tenant
        super().__init__(
            f"Store for '{tenant}' does not support replace_reducer. "
            f"Pass replace_container=True to register a new store instead"
        )
