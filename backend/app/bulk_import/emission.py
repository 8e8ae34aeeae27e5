"""
Document emission for reviewed rows.

Every row not in Error gets a FinalizedShipment and a rendered invoice; the
document handle and shipment id are stored back on the row. A rendering failure
clears any handle left by an earlier run and the batch continues.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from app.bulk_import.enrichment import Sleep, progress_percent
from app.bulk_import.jobs import ProgressCallback
from app.bulk_import.review import ReviewStore
from app.schemas.shipment import ExporterProfile, FinalizedShipment, ReviewRow, RowStatus

logger = logging.getLogger("clearpath.emission")

MSG_RENDER_FAILED = "Invoice rendering failed"

# Bulk rows are invoiced as one package each
BULK_PACKAGE_COUNT = 1

RenderFn = Callable[[FinalizedShipment, ExporterProfile], Awaitable[str]]


def _new_shipment_id(row: ReviewRow) -> str:
    return f"bulk_{uuid.uuid4().hex[:12]}_{row.id}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_eligible(row: ReviewRow) -> bool:
    return row.status is not RowStatus.ERROR and row.enriched is not None


class DocumentEmitter:
    """Builds finalized shipments and renders one invoice per eligible row."""

    def __init__(
        self,
        render: RenderFn,
        *,
        currency: str = "USD",
        row_delay_seconds: float = 0.05,
        sleep: Sleep = asyncio.sleep,
        id_factory: Callable[[ReviewRow], str] = _new_shipment_id,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.render = render
        self.currency = currency
        self.row_delay_seconds = row_delay_seconds
        self.sleep = sleep
        self.id_factory = id_factory
        self.clock = clock

    def build_shipment(self, row: ReviewRow, exporter: ExporterProfile) -> FinalizedShipment:
        if row.enriched is None:
            raise ValueError(f"Row {row.id} has no enriched data")

        original, enriched = row.original, row.enriched
        return FinalizedShipment(
            id=self.id_factory(row),
            user_id=exporter.id,
            order_id=original.order_id,
            product_description=original.description,
            material=enriched.material,
            intended_use=enriched.intended_use,
            quantity=original.quantity,
            unit_price=original.unit_price,
            currency=self.currency,
            origin_country=original.origin,
            destination_country=original.destination,
            gross_weight=enriched.gross_weight,
            net_weight=enriched.net_weight,
            package_count=BULK_PACKAGE_COUNT,
            incoterm=enriched.incoterm,
            export_reason=enriched.export_reason,
            hs_code=enriched.hs_code,
            consignee_name=original.buyer_name,
            consignee_address=original.buyer_address,
            created_at=self.clock(),
            validation_warnings=[m for m in row.messages if m != MSG_RENDER_FAILED],
        )

    async def emit(
        self,
        store: ReviewStore,
        exporter: ExporterProfile,
        on_progress: ProgressCallback | None = None,
    ) -> list[FinalizedShipment]:
        """Render invoices for all eligible rows, in ordinal order.

        Returns the shipments whose invoice rendered successfully.
        """
        eligible = [row for row in store.rows if is_eligible(row)]
        total = len(eligible)
        skipped = len(store) - total
        logger.info("Generating %d invoices (%d rows skipped)", total, skipped)

        if total == 0 and on_progress:
            on_progress(100)

        emitted: list[FinalizedShipment] = []
        for i, row in enumerate(eligible):
            shipment = self.build_shipment(row, exporter)
            try:
                handle = await self.render(shipment, exporter)
            except Exception as e:
                logger.warning(
                    "Invoice rendering failed for row %d (order %s): %s",
                    row.id, row.original.order_id, e,
                )
                store.detach_document(row.id)
                store.add_message(row.id, MSG_RENDER_FAILED)
            else:
                store.attach_document(row.id, handle, shipment.id)
                store.discard_message(row.id, MSG_RENDER_FAILED)
                emitted.append(shipment)

            if on_progress:
                on_progress(progress_percent(i + 1, total))

            if i < total - 1 and self.row_delay_seconds > 0:
                await self.sleep(self.row_delay_seconds)

        logger.info("Invoice generation complete: %d of %d rendered", len(emitted), total)
        return emitted
