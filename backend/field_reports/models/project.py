from sqlalchemy import Column, Integer, String, UniqueConstraint
from field_reports.models.base import Base, TenantMixin, TimestampMixin


class Project(Base, TenantMixin, TimestampMixin):
    """
    Project that receives field reports

    project_number is allocated from tenant_project_counters and never
    changes afterwards. Its sanitized form is the project folder name.
    """
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    project_number = Column(String(50), nullable=False, index=True)
    name = Column(String(200), nullable=False)

    __table_args__ = (
        UniqueConstraint('tenant_id', 'project_number', name='uq_project_tenant_number'),
    )

    def __repr__(self):
        return f"<Project {self.project_number} (tenant: {self.tenant_id})>"
