from fastapi import APIRouter, Depends, HTTPException
from field_reports.api.deps import get_current_tenant_id, get_report_storage
from field_reports.schemas.storage import StoragePathUpdate, StoragePathResponse
from field_reports.services.path_resolver import StorageStatus
from field_reports.services.report_storage import ReportStorageService

router = APIRouter()


@router.get("/storage", response_model=StorageStatus)
def get_storage_status(
    tenant_id: int = Depends(get_current_tenant_id),
    storage: ReportStorageService = Depends(get_report_storage),
):
    """
    Shows every storage candidate of the tenant and the one in use
    """
    return storage.resolver.status(tenant_id)


@router.put("/storage", response_model=StoragePathResponse)
def set_storage_path(
    data: StoragePathUpdate,
    tenant_id: int = Depends(get_current_tenant_id),
    storage: ReportStorageService = Depends(get_report_storage),
):
    """
    Sets the tenant storage folder (null or blank clears it)
    """
    tenant_settings = storage.resolver.tenant_settings
    try:
        path = tenant_settings.set_tenant_storage_path(tenant_id, data.path)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return StoragePathResponse(path=path)
