"""Tests for the commercial invoice renderer and document store."""

from datetime import datetime, timezone

import pytest

from app.documents.renderer import InvoiceRenderer, invoice_number
from app.documents.store import DocumentStore
from app.schemas.shipment import ANONYMOUS_EXPORTER, FinalizedShipment, Incoterm
from app.session.state import demo_exporter


@pytest.fixture
def shipment():
    return FinalizedShipment(
        id="bulk_3f9a1c2b7d4e_0",
        user_id="user_1",
        order_id="ORD-1001",
        product_description="Cotton T-Shirt",
        material="Cotton",
        intended_use="Apparel",
        quantity=10,
        unit_price=15.0,
        currency="USD",
        origin_country="USA",
        destination_country="UK",
        gross_weight=2.5,
        net_weight=2.0,
        incoterm=Incoterm.DAP,
        hs_code="610910",
        consignee_name="John Doe",
        consignee_address="123 Main St, London, UK",
        created_at=datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc),
    )


@pytest.fixture
def store():
    return DocumentStore()


@pytest.fixture
def renderer(store):
    # Low resolution keeps the tests fast
    return InvoiceRenderer(store, dpi=50)


class TestRenderPdf:
    def test_produces_pdf(self, renderer, shipment):
        content = renderer.render_pdf(shipment, demo_exporter("ops@acme.test"))
        assert content.startswith(b"%PDF")

    def test_deterministic(self, renderer, shipment):
        exporter = demo_exporter("ops@acme.test")
        assert renderer.render_pdf(shipment, exporter) == renderer.render_pdf(shipment, exporter)

    def test_missing_optional_fields(self, renderer, shipment):
        bare = shipment.model_copy(update={
            "hs_code": None,
            "incoterm": None,
            "gross_weight": None,
            "material": None,
            "intended_use": None,
        })
        assert renderer.render_pdf(bare, ANONYMOUS_EXPORTER).startswith(b"%PDF")

    def test_invoice_number(self, shipment):
        assert invoice_number(shipment) == "2B7D4E_0"


class TestRender:
    @pytest.mark.asyncio
    async def test_stores_document(self, renderer, store, shipment):
        handle = await renderer.render(shipment, ANONYMOUS_EXPORTER)

        assert handle.startswith("blob:")
        assert handle in store
        document = store.get(handle)
        assert document.media_type == "application/pdf"
        assert document.content.startswith(b"%PDF")

    @pytest.mark.asyncio
    async def test_each_render_gets_new_handle(self, renderer, store, shipment):
        first = await renderer.render(shipment, ANONYMOUS_EXPORTER)
        second = await renderer.render(shipment, ANONYMOUS_EXPORTER)

        assert first != second
        assert len(store) == 2


class TestDocumentStore:
    def test_fetch(self, store):
        handle = store.put(b"data", media_type="application/zip")
        assert store.fetch(handle) == b"data"
        assert store.get(handle).media_type == "application/zip"

    def test_unknown_handle(self, store):
        with pytest.raises(KeyError):
            store.get("blob:missing")

    def test_clear(self, store):
        store.put(b"data")
        store.clear()
        assert len(store) == 0
