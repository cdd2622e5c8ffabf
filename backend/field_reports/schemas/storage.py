from pydantic import BaseModel
from typing import Optional


class StoragePathUpdate(BaseModel):
    """Schema to set (or clear, with null/blank) the tenant storage path"""
    path: Optional[str] = None


class StoragePathResponse(BaseModel):
    path: Optional[str] = None
