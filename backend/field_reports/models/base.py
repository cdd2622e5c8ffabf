from sqlalchemy import Column, Integer, DateTime, ForeignKey
from sqlalchemy.ext.declarative import declared_attr
from sqlalchemy.orm import relationship
from datetime import datetime
from field_reports.database import Base


class TenantMixin:
    """
    Mixin that adds tenant_id to tenant-scoped tables
    CRITICAL for multi-tenant isolation

    Every table using this mixin gets:
    - tenant_id (foreign key to tenants.id)
    - relationship to Tenant
    """

    @declared_attr
    def tenant_id(cls):
        return Column(Integer, ForeignKey('tenants.id'), nullable=False, index=True)

    @declared_attr
    def tenant(cls):
        return relationship("Tenant", foreign_keys=[cls.tenant_id])


class TimestampMixin:
    """
    Mixin for audit timestamps
    Adds created_at and updated_at
    """
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


# Base is defined in database.py
# Re-exported here for convenience
__all__ = ['Base', 'TenantMixin', 'TimestampMixin']
