import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Annotated
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    Strict,
    StringConstraints,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from leadbook.models.enums import BHK, City, PropertyType, Purpose, Source, Status, Timeline

PHONE_RE = re.compile(r"[0-9]{10,15}")

# budgets are stored as BIGINT
MAX_BUDGET = 2**63 - 1

Budget = Annotated[int, Strict(), Field(gt=0, le=MAX_BUDGET)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Input: strict variant (JSON API payloads) ---
class LeadCreate(CamelModel):
    full_name: Annotated[str, StringConstraints(min_length=2, max_length=80)]
    email: Optional[EmailStr] = None
    phone: str
    city: City
    property_type: PropertyType
    bhk: Optional[BHK] = None
    purpose: Purpose
    budget_min: Optional[Budget] = None
    budget_max: Optional[Budget] = None
    timeline: Timeline
    source: Source
    notes: Optional[Annotated[str, StringConstraints(max_length=1000)]] = None
    tags: List[str] = Field(default_factory=list)
    status: Status = Status.NEW

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("phone")
    @classmethod
    def _phone_digits(cls, value: str) -> str:
        if not PHONE_RE.fullmatch(value):
            raise ValueError("Phone must be 10 to 15 digits")
        return value


# --- Input: lenient variant (CSV-derived rows, every cell may be a string) ---
class LeadCsvRow(LeadCreate):

    @model_validator(mode="before")
    @classmethod
    def _coerce_cells(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return coerce_csv_cells(data)


_CSV_INT_FIELDS = ("budgetMin", "budgetMax", "budget_min", "budget_max")
_CSV_ENUM_FIELDS = {
    "bhk": BHK,
    "timeline": Timeline,
}


def coerce_csv_cells(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Turn a raw CSV row into input the strict rules can judge.

    Blank cells are dropped so optional fields read as absent and defaults
    apply; whole-number cells become ints; a comma-joined `tags` cell becomes
    a list; BHK and timeline aliases ("Two", "0-3m") resolve to canonical values.
    """
    coerced: Dict[str, Any] = {}
    for key, value in row.items():
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if value == "":
                continue
        coerced[key] = value

    for key in _CSV_INT_FIELDS:
        value = coerced.get(key)
        if isinstance(value, str) and value.isascii() and value.isdigit():
            coerced[key] = int(value)

    tags = coerced.get("tags")
    if isinstance(tags, str):
        coerced["tags"] = [t.strip() for t in tags.split(",") if t.strip()]

    for key, enum_cls in _CSV_ENUM_FIELDS.items():
        value = coerced.get(key)
        if isinstance(value, str):
            try:
                coerced[key] = enum_cls(value).value
            except ValueError:
                pass  # left as-is so the field rule reports it

    return coerced


# --- Input: update (strict fields + the observed version token) ---
class LeadUpdate(LeadCreate):
    updated_at: datetime

    @field_validator("updated_at")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        # stored timestamps are naive UTC
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


# --- Query filters ---
class LeadFilterParams(CamelModel):
    search: Optional[str] = None
    city: Optional[City] = None
    property_type: Optional[PropertyType] = None
    status: Optional[Status] = None
    timeline: Optional[Timeline] = None

    @model_validator(mode="before")
    @classmethod
    def _blank_is_absent(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        cleaned = {}
        for key, value in data.items():
            if isinstance(value, str):
                value = value.strip()
            if value in (None, ""):
                continue
            cleaned[key] = value
        if isinstance(cleaned.get("timeline"), str):
            try:
                cleaned["timeline"] = Timeline(cleaned["timeline"]).value
            except ValueError:
                pass
        return cleaned


class PageParams(BaseModel):
    page: int = Field(1, ge=1)


# --- Output ---
class LeadOut(CamelModel):
    id: UUID
    owner_id: UUID
    full_name: str
    email: Optional[str] = None
    phone: str
    city: City
    property_type: PropertyType
    bhk: Optional[BHK] = None
    purpose: Purpose
    budget_min: Optional[int] = None
    budget_max: Optional[int] = None
    timeline: Timeline
    source: Source
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    status: Status
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChangeRecordOut(CamelModel):
    id: UUID
    lead_id: UUID
    changed_by: UUID
    diff: Dict[str, Any]
    changed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LeadDetail(LeadOut):
    history: List[ChangeRecordOut] = Field(default_factory=list)


class LeadListResponse(CamelModel):
    items: List[LeadOut]
    total: int
    page: int
    page_size: int
    total_pages: int
