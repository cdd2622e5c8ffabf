"""
System models - Multi-tenant

Every tenant-scoped model carries tenant_id (TenantMixin or an explicit column)
so storage folders and counters never leak between companies
"""

from field_reports.models.base import Base, TenantMixin, TimestampMixin
from field_reports.models.tenant import Tenant
from field_reports.models.project import Project
from field_reports.models.project_counter import ProjectCounter
from field_reports.models.app_setting import AppSetting

__all__ = [
    "Base",
    "TenantMixin",
    "TimestampMixin",
    "Tenant",
    "Project",
    "ProjectCounter",
    "AppSetting",
]
