from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ProjectCreate(BaseModel):
    """Schema to create a project"""
    name: str = Field(..., min_length=1, max_length=200)


class ProjectResponse(BaseModel):
    """Schema returned after creating a project"""
    id: int
    tenant_id: int
    project_number: str
    name: str
    folder: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
