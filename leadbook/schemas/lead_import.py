from typing import Any, List, Optional
from pydantic import BaseModel

from leadbook.schemas.lead import CamelModel


class FieldErrorOut(BaseModel):
    field: Optional[str] = None
    message: str


# --- Per-row outcome ---
class ImportRowResult(BaseModel):
    row: int  # 1-based position in the upload
    data: Any
    success: bool
    errors: Optional[List[FieldErrorOut]] = None


class ImportSummary(BaseModel):
    total: int
    success: int
    errors: int
    inserted: int


# --- Main response ---
class ImportResponse(CamelModel):
    results: List[ImportRowResult]
    summary: ImportSummary
