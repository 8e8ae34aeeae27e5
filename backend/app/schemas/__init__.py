from app.schemas.ai import EnrichmentRequest, EnrichmentResponse, ExtractedOrder, ValidationResult
from app.schemas.health import HealthResponse
from app.schemas.shipment import (
    EnrichedFields,
    ExporterProfile,
    FinalizedShipment,
    RawOrderRecord,
    ReviewRow,
    RowStatus,
)

__all__ = [
    "EnrichedFields",
    "EnrichmentRequest",
    "EnrichmentResponse",
    "ExporterProfile",
    "ExtractedOrder",
    "FinalizedShipment",
    "HealthResponse",
    "RawOrderRecord",
    "ReviewRow",
    "RowStatus",
    "ValidationResult",
]
