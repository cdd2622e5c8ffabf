from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from starlette.concurrency import run_in_threadpool
from field_reports.api.deps import get_current_tenant_id, get_report_storage
from field_reports.core.categories import coerce_category
from field_reports.core.exceptions import ConfigurationError
from field_reports.schemas.report import ArtifactSaveResult
from field_reports.services.report_storage import ReportStorageService

router = APIRouter()


@router.post("/{project_number}/reports/{category}", response_model=ArtifactSaveResult)
async def save_report(
    project_number: str,
    category: str,
    request: Request,
    report_date: Optional[str] = Query(None, description="Field date (YYYY-MM-DD)"),
    regenerate: bool = Query(False, description="Save as a revision of the existing report"),
    sequence: Optional[int] = Query(None, ge=1),
    tenant_id: int = Depends(get_current_tenant_id),
    storage: ReportStorageService = Depends(get_report_storage),
):
    """
    Saves a rendered report PDF (request body = PDF bytes)

    Always answers 200 once the PDF exists: persisted=false + error tell the
    client the file could not be written to the project folder.
    """
    try:
        report_category = coerce_category(category)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    payload = await request.body()
    if not payload:
        raise HTTPException(status_code=400, detail="Empty report payload")

    try:
        return await run_in_threadpool(
            storage.save_artifact,
            tenant_id,
            project_number,
            report_category,
            report_date,
            payload,
            force_revision=regenerate,
            sequence=sequence,
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
