from contextvars import ContextVar
from typing import Optional

# Context var holding the tenant_id of the current request
# Lets any layer read the tenant without passing it around
_tenant_id_ctx_var: ContextVar[Optional[int]] = ContextVar('tenant_id', default=None)


def get_current_tenant_id() -> Optional[int]:
    """
    Returns the tenant_id of the current request context
    """
    return _tenant_id_ctx_var.get()


def set_current_tenant_id(tenant_id: int) -> None:
    """
    Sets the tenant_id for the current request context
    """
    _tenant_id_ctx_var.set(tenant_id)


def clear_current_tenant_id() -> None:
    """
    Clears the tenant_id from the context
    """
    _tenant_id_ctx_var.set(None)
