from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.bulk_import.service import BulkImportService
from app.config import Settings
from app.schemas.ai import EnrichmentResponse, ValidationResult
from app.schemas.shipment import RawOrderRecord
from app.session.state import SessionState

GOOD_ENRICHMENT = {
    "hs_code": "610910",
    "material": "Cotton",
    "intended_use": "Apparel",
    "gross_weight": 2.5,
    "net_weight": 2.0,
    "incoterm": "DAP",
    "export_reason": "Sale",
    "risk_level": "Low",
}


async def no_sleep(_seconds: float) -> None:
    return None


class FakeCustomsAI:
    """Stands in for CustomsAIService. Responses are keyed by product description."""

    def __init__(self):
        self.enrichments: dict[str, dict] = {}
        self.validations: dict[str, ValidationResult] = {}
        self.failing: set[str] = set()
        self.enrich = AsyncMock(side_effect=self._enrich)
        self.validate = AsyncMock(side_effect=self._validate)

    async def _enrich(self, request):
        if request.description in self.failing:
            raise RuntimeError("AI service unavailable")
        return EnrichmentResponse.model_validate(
            {**GOOD_ENRICHMENT, **self.enrichments.get(request.description, {})}
        )

    async def _validate(self, shipment: dict):
        return self.validations.get(shipment["description"], ValidationResult(valid=True))


@pytest.fixture
def mock_settings() -> Settings:
    return Settings(
        anthropic_api_key="test-key",
        claude_model="claude-sonnet-4-20250514",
        claude_max_tokens=2048,
        enrichment_row_delay_ms=0,
        emission_row_delay_ms=0,
    )


@pytest.fixture
def fake_ai() -> FakeCustomsAI:
    return FakeCustomsAI()


@pytest.fixture
def make_record():
    def _make(index: int = 0, **overrides) -> RawOrderRecord:
        data = {
            "index": index,
            "order_id": f"ORD-{index + 1}",
            "buyer_name": "John Doe",
            "buyer_address": "123 Main St, London, UK",
            "description": f"Product {index + 1}",
            "quantity": 2,
            "unit_price": 15.0,
            "origin": "USA",
            "destination": "UK",
        }
        data.update(overrides)
        return RawOrderRecord(**data)

    return _make


@pytest.fixture
def session() -> SessionState:
    return SessionState()


@pytest.fixture
def bulk_service(mock_settings, fake_ai) -> BulkImportService:
    return BulkImportService(mock_settings, fake_ai, sleep=no_sleep)


@pytest.fixture
async def client(session, bulk_service):
    from app.dependencies import get_bulk_import_service, get_session
    from app.main import app

    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_bulk_import_service] = lambda: bulk_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
