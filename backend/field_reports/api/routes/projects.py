from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from field_reports.api.deps import get_db, get_current_tenant_id, get_report_storage, get_counter_store
from field_reports.core.exceptions import ProjectNumberCollisionError, StoreUnavailableError
from field_reports.schemas.project import ProjectCreate, ProjectResponse
from field_reports.services.counter_store import ProjectCounterStore
from field_reports.services.project_service import create_project
from field_reports.services.report_storage import ReportStorageService

router = APIRouter()


@router.post("/", response_model=ProjectResponse, status_code=201)
def create_project_route(
    data: ProjectCreate,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
    storage: ReportStorageService = Depends(get_report_storage),
    store: ProjectCounterStore = Depends(get_counter_store),
):
    """
    Creates a project with the next project number of the tenant
    """
    try:
        project, folder = create_project(db, tenant_id, data.name, storage=storage, store=store)
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ProjectNumberCollisionError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return ProjectResponse(
        id=project.id,
        tenant_id=project.tenant_id,
        project_number=project.project_number,
        name=project.name,
        folder=folder,
        created_at=project.created_at,
    )
