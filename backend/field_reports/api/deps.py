from functools import lru_cache
from fastapi import Request, HTTPException
from field_reports.database import get_db  # noqa: F401  re-exported for routes
from field_reports.api.utils.sequencers import counter_store
from field_reports.services.counter_store import ProjectCounterStore
from field_reports.services.report_storage import ReportStorageService, build_report_storage_service


def get_current_tenant_id(request: Request) -> int:
    """
    Reads tenant_id from the request context (set by TenantMiddleware)
    """
    tenant_id = getattr(request.state, 'tenant_id', None)
    if tenant_id is None:
        raise HTTPException(status_code=400, detail="Tenant not identified")
    return tenant_id


@lru_cache()
def get_report_storage() -> ReportStorageService:
    """
    Dependency returning the shared report storage service
    """
    return build_report_storage_service()


def get_counter_store() -> ProjectCounterStore:
    """
    Dependency returning the shared project counter store
    """
    return counter_store
