"""
Tenant storage settings backed by the database

Read side is what the path resolver needs; the write side validates a path
before storing it, so a typo in the settings screen is rejected up front.
"""
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from field_reports.models.app_setting import AppSetting
from field_reports.models.tenant import Tenant
from field_reports.services.path_resolver import normalize_user_path, validate_path

logger = logging.getLogger(__name__)


class DatabaseTenantSettings:
    """Reads and writes storage paths in the tenants / app_settings tables"""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get_tenant_storage_path(self, tenant_id: int) -> Optional[str]:
        with self.session_factory() as db:
            tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
            if tenant and tenant.workflow_base_path and tenant.workflow_base_path.strip():
                return tenant.workflow_base_path.strip()
        return None

    def get_legacy_shared_path(self) -> Optional[str]:
        with self.session_factory() as db:
            setting = db.get(AppSetting, AppSetting.LEGACY_SHARED_PATH_KEY)
            if setting and setting.value and setting.value.strip():
                return setting.value.strip()
        return None

    def set_tenant_storage_path(self, tenant_id: int, path: Optional[str]) -> Optional[str]:
        """
        Stores the tenant path; None or blank clears it

        Returns:
            The normalized path that was stored (None when cleared)

        Raises:
            ValueError: tenant not found, traversal attempt or unusable folder
        """
        normalized = None
        if path is not None and path.strip():
            normalized = normalize_user_path(path)
            validation = validate_path(normalized)
            if not validation.valid:
                raise ValueError(f"Invalid storage path {normalized}: {validation.error}")

        with self.session_factory() as db:
            tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
            if not tenant:
                raise ValueError(f"Tenant {tenant_id} not found")
            tenant.workflow_base_path = normalized
            db.commit()

        if normalized:
            logger.info("[STORAGE] Tenant %s storage path set to %s", tenant_id, normalized)
        else:
            logger.info("[STORAGE] Tenant %s storage path cleared", tenant_id)
        return normalized
