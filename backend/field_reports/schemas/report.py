from pydantic import BaseModel
from typing import Optional


class ArtifactSaveResult(BaseModel):
    """
    Outcome of saving a report PDF

    persisted=False with error set means the report was generated but could
    not be written; the caller still delivers the PDF.
    """
    path: Optional[str] = None
    filename: Optional[str] = None
    sequence: Optional[int] = None
    revision: Optional[int] = None
    is_revision: bool = False
    persisted: bool = False
    error: Optional[str] = None
