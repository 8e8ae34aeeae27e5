"""Request/response contracts of the external AI capabilities."""

from pydantic import BaseModel, Field, field_validator

from app.schemas.shipment import DutiesPayer, ExportReason, Incoterm, RiskLevel, coerce_hs_code


class EnrichmentRequest(BaseModel):
    description: str
    quantity: float
    total_value: float
    origin_country: str
    destination_country: str = ""
    duties_payer: DutiesPayer = DutiesPayer.BUYER


class EnrichmentResponse(BaseModel):
    hs_code: str | None = Field(None, description="6-digit HS classification code")
    material: str | None = None
    intended_use: str | None = None
    gross_weight: float | None = None
    net_weight: float | None = None
    incoterm: Incoterm
    unit_price: float | None = None
    export_reason: ExportReason | None = None
    risk_level: RiskLevel | None = None
    reasoning: str | None = None

    @field_validator("hs_code", mode="before")
    @classmethod
    def hs_code_as_text(cls, v):
        return coerce_hs_code(v)


class ValidationResult(BaseModel):
    valid: bool
    warnings: list[str] = Field(default_factory=list)


class ExtractedOrder(BaseModel):
    """Best-effort fields pulled out of free-form order text."""

    consignee_name: str | None = None
    consignee_address: str | None = None
    product_description: str | None = None
    quantity: float | None = None
    total_value: float | None = None
    currency: str | None = None
    destination_country: str | None = None
