"""
Project creation

The project number is reserved first; no number means no project. The
folder tree is created afterwards and a failure there never undoes the
project: folders are created again on the first report save.
"""
import logging
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from field_reports.api.utils.sequencers import allocate_project_number
from field_reports.core.exceptions import ConfigurationError, FilesystemError, ProjectNumberCollisionError
from field_reports.models.project import Project
from field_reports.services.counter_store import ProjectCounterStore
from field_reports.services.report_storage import ReportStorageService

logger = logging.getLogger(__name__)


def create_project(
    db: Session,
    tenant_id: int,
    name: str,
    storage: ReportStorageService,
    store: Optional[ProjectCounterStore] = None,
    year: Optional[int] = None,
) -> Tuple[Project, Optional[str]]:
    """
    Creates a project with a freshly allocated number

    Returns:
        (project, folder path or None when the folder could not be created)

    Raises:
        StoreUnavailableError: counter store unreachable
        ProjectNumberCollisionError: number taken, even after the retry
    """
    project_number = allocate_project_number(db, tenant_id, year=year, store=store)

    project = Project(tenant_id=tenant_id, project_number=project_number, name=name.strip())
    db.add(project)
    try:
        db.commit()
    except IntegrityError as e:
        # Unique (tenant_id, project_number) hit by a concurrent insert
        db.rollback()
        raise ProjectNumberCollisionError(project_number, tenant_id) from e
    db.refresh(project)
    logger.info("[PROJECTS] Project %s created for tenant %s", project_number, tenant_id)

    try:
        folder = str(storage.ensure_project_folder(tenant_id, project_number))
    except (ConfigurationError, FilesystemError) as e:
        logger.warning("[PROJECTS] Could not create folder for project %s: %s", project_number, e)
        folder = None

    return project, folder
