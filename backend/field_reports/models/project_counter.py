"""
Counter table for project numbers
Guarantees numbers are never reused, even if projects are deleted
"""
from datetime import datetime
from sqlalchemy import Column, Integer, DateTime, PrimaryKeyConstraint
from field_reports.models.base import Base


class ProjectCounter(Base):
    """
    Stores the NEXT project sequence to hand out for each tenant/year.
    This table must NEVER be cleaned, so numbering stays continuous.

    Only ProjectCounterStore mutates rows, always with a single atomic
    UPDATE ... SET next_seq = next_seq + 1.
    """
    __tablename__ = "tenant_project_counters"

    tenant_id = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    next_seq = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        PrimaryKeyConstraint('tenant_id', 'year', name='pk_tenant_project_counters'),
    )

    def __repr__(self):
        return f"<ProjectCounter tenant={self.tenant_id} year={self.year} next={self.next_seq}>"
