from sqlalchemy import Column, Integer, String, Boolean, Text
from field_reports.models.base import Base, TimestampMixin


class Tenant(Base, TimestampMixin):
    """
    A client company of the field reports system (Multi-Tenant)

    Storage-related settings live here:
    - project_number_prefix: first block of every project number (ex: "02")
    - workflow_base_path: folder where this tenant's report PDFs are written.
      NULL means "not configured" and the path resolver falls back to the
      legacy shared path / process default.
    """
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(200), nullable=False)
    subdomain = Column(String(50), unique=True, nullable=True, index=True)
    active = Column(Boolean, default=True, nullable=False)

    project_number_prefix = Column(String(10), nullable=True)
    workflow_base_path = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Tenant {self.name} (ID: {self.id})>"
