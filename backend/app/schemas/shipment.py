"""Core records of the bulk invoice flow: orders, enriched customs fields, review rows."""

import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

HS_CODE_DIGITS = 6


class _CaseInsensitiveEnum(str, enum.Enum):
    """Accepts values regardless of case ("low", "LOW" -> RiskLevel.LOW)."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        return None


class Incoterm(_CaseInsensitiveEnum):
    DAP = "DAP"
    DDP = "DDP"
    FOB = "FOB"
    EXW = "EXW"
    CIF = "CIF"


class ExportReason(_CaseInsensitiveEnum):
    SALE = "Sale"
    SAMPLE = "Sample"
    GIFT = "Gift"
    REPAIR = "Repair"
    RETURN = "Return"


class RiskLevel(_CaseInsensitiveEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class DutiesPayer(_CaseInsensitiveEnum):
    SELLER = "Seller"
    BUYER = "Buyer"


class RowStatus(_CaseInsensitiveEnum):
    OK = "OK"
    WARNING = "Warning"
    ERROR = "Error"


def coerce_hs_code(value):
    """Accept an HS code given as a bare number; leading zeros lost in the number are restored."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value).zfill(HS_CODE_DIGITS)
    if isinstance(value, float) and value.is_integer():
        return str(int(value)).zfill(HS_CODE_DIGITS)
    return value


# --- Ingestion output ---


class RawOrderRecord(BaseModel):
    """One normalized spreadsheet row. Never mutated after ingestion."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Zero-based ordinal within the import batch")
    order_id: str
    buyer_name: str
    buyer_address: str
    description: str
    quantity: float = Field(1.0, gt=0)
    unit_price: float = Field(..., ge=0)
    origin: str
    destination: str = ""

    @property
    def total_value(self) -> float:
        return self.quantity * self.unit_price


# --- Enrichment output ---


class EnrichedFields(BaseModel):
    hs_code: str | None = None
    gross_weight: float | None = Field(None, description="Gross weight in kg for the whole shipment")
    net_weight: float | None = Field(None, description="Net weight in kg for the whole shipment")
    incoterm: Incoterm | None = None
    export_reason: ExportReason = ExportReason.SALE
    material: str | None = None
    intended_use: str | None = None
    risk_level: RiskLevel = RiskLevel.LOW

    @field_validator("hs_code", mode="before")
    @classmethod
    def hs_code_as_text(cls, v):
        return coerce_hs_code(v)


class ReviewRow(BaseModel):
    id: int
    original: RawOrderRecord
    enriched: EnrichedFields | None = None
    status: RowStatus = RowStatus.OK
    messages: list[str] = Field(default_factory=list)
    is_user_confirmed: bool = False
    document_handle: str | None = None
    shipment_id: str | None = None

    def merged_fields(self) -> dict:
        """Original and enriched fields as one flat dict (input for validation)."""
        data = self.original.model_dump(mode="json")
        if self.enriched is not None:
            data.update(self.enriched.model_dump(mode="json"))
        return data


# --- Identity ---


class ExporterProfile(BaseModel):
    id: str
    email: str = ""
    company_name: str
    address: str | None = None
    tax_id: str | None = None
    default_origin: str = "USA"
    subscription_tier: str = "FREE"
    shipments_count: int = 0


ANONYMOUS_EXPORTER = ExporterProfile(
    id="temp",
    email="",
    company_name="Your Company",
    address="Address",
    default_origin="USA",
)


# --- Emission ---


class FinalizedShipment(BaseModel):
    """Immutable snapshot handed to the invoice renderer."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    order_id: str
    product_description: str
    material: str | None = None
    intended_use: str | None = None
    quantity: float
    unit_price: float
    currency: str
    origin_country: str
    destination_country: str
    gross_weight: float | None = None
    net_weight: float | None = None
    package_count: int = 1
    incoterm: Incoterm | None = None
    export_reason: ExportReason = ExportReason.SALE
    hs_code: str | None = None
    consignee_name: str
    consignee_address: str
    created_at: datetime
    docs_generated: bool = True
    validation_warnings: list[str] = Field(default_factory=list)

    @property
    def total_value(self) -> float:
        return self.quantity * self.unit_price
