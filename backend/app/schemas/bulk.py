"""Pydantic schemas for the bulk import endpoints."""

import enum
from typing import Any

from pydantic import BaseModel, Field

from app.schemas.shipment import RawOrderRecord, ReviewRow


class ImportStep(str, enum.Enum):
    UPLOAD = "UPLOAD"
    ENRICHING = "ENRICHING"
    REVIEW = "REVIEW"
    GENERATING = "GENERATING"
    COMPLETE = "COMPLETE"


class PasteRequest(BaseModel):
    text: str = Field(..., description="Delimited order rows, header line first")


class IngestResponse(BaseModel):
    records: list[RawOrderRecord]
    total: int
    step: ImportStep


class BatchStatusResponse(BaseModel):
    step: ImportStep
    progress: int = 0
    done: bool = True
    error: str | None = None
    total_rows: int = 0
    counts: dict[str, int] = Field(default_factory=dict)


class RowListResponse(BaseModel):
    rows: list[ReviewRow]
    total: int


class FieldUpdateRequest(BaseModel):
    field: str = Field(..., description="Enriched field name, e.g. hs_code or gross_weight")
    value: Any = None
