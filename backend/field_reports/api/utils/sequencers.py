"""
Sequencers - project number generation

IMPORTANT: numbers come from the 'tenant_project_counters' table through
ProjectCounterStore, which reserves each value with an atomic increment.
Numbers NEVER restart and are NEVER reused, even if projects are deleted.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from field_reports.config import settings
from field_reports.core.exceptions import ProjectNumberCollisionError
from field_reports.core.tenant_context import get_current_tenant_id
from field_reports.database import SessionLocal
from field_reports.models.project import Project
from field_reports.models.tenant import Tenant
from field_reports.services.counter_store import ProjectCounterStore, ScopeKey

logger = logging.getLogger(__name__)

# One retry when an allocated number is already taken
COLLISION_RETRIES = 1

# Shared store bound to the application database
counter_store = ProjectCounterStore(SessionLocal)


def format_project_number(prefix: str, year: int, sequence: int, digits: Optional[int] = None) -> str:
    """
    Formats a project number: PREFIX-YYYY-NNNN

    Usage:
        format_project_number("02", 2025, 7)
        # Returns: "02-2025-0007"
    """
    digits = digits or settings.PROJECT_NUMBER_DIGITS
    return f"{prefix}-{year}-{sequence:0{digits}d}"


def get_project_number_prefix(db: Session, tenant_id: int) -> str:
    """Tenant prefix, or the default when the tenant has none"""
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if tenant and tenant.project_number_prefix and tenant.project_number_prefix.strip():
        return tenant.project_number_prefix.strip()
    return settings.DEFAULT_PROJECT_NUMBER_PREFIX


def project_number_exists(db: Session, tenant_id: int, project_number: str) -> bool:
    return db.query(Project.id).filter(
        Project.tenant_id == tenant_id,
        Project.project_number == project_number
    ).first() is not None


def allocate_project_number(
    db: Session,
    tenant_id: Optional[int] = None,
    year: Optional[int] = None,
    store: Optional[ProjectCounterStore] = None
) -> str:
    """
    Allocates the next project number of the tenant for the year

    Args:
        db: Database session (used for the tenant prefix and collision check)
        tenant_id: Tenant ID (default: tenant of the current request)
        year: Year (default: current year)
        store: Counter store (default: application store)

    Returns:
        Formatted number (ex: "02-2025-1201")

    Raises:
        StoreUnavailableError: counter store unreachable
        ProjectNumberCollisionError: number still taken after the retry
    """
    tenant_id = tenant_id if tenant_id is not None else get_current_tenant_id()
    if tenant_id is None:
        raise ValueError("Tenant not identified")

    year = year or datetime.now().year
    store = store or counter_store
    prefix = get_project_number_prefix(db, tenant_id)
    scope = ScopeKey(tenant_id=tenant_id, year=year)

    for attempt in range(COLLISION_RETRIES + 1):
        sequence = store.allocate_next(scope)
        project_number = format_project_number(prefix, year, sequence)

        if not project_number_exists(db, tenant_id, project_number):
            return project_number

        logger.warning(
            "[PROJECTS] Project number %s already exists for tenant %s (attempt %d/%d)",
            project_number, tenant_id, attempt + 1, COLLISION_RETRIES + 1,
        )

    raise ProjectNumberCollisionError(project_number, tenant_id)
