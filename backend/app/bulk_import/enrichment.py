"""
Row enrichment pipeline.

Flow per row (strictly one row at a time, in ordinal order):
  1. Enrich: HS code, weights, Incoterm, material, intended use (AI)
  2. Validate the merged record (AI) -> Warning on anomalies
  3. Hard rules: missing destination / missing HS code -> Error
  4. Any AI failure -> Error "AI Service Failed"; the batch continues
  5. Report progress, then pause before the next row
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from app.bulk_import.jobs import ProgressCallback
from app.schemas.ai import EnrichmentRequest
from app.schemas.shipment import (
    DutiesPayer,
    EnrichedFields,
    ExportReason,
    RawOrderRecord,
    ReviewRow,
    RiskLevel,
    RowStatus,
)

logger = logging.getLogger("clearpath.enrichment")

MSG_AI_FAILED = "AI Service Failed"
MSG_MISSING_DESTINATION = "Missing Destination"
MSG_NOT_CLASSIFIED = "AI failed to classify"
MSG_POTENTIAL_MISMATCH = "Potential mismatch"

Sleep = Callable[[float], Awaitable[None]]


def progress_percent(completed: int, total: int) -> int:
    if total <= 0:
        return 100
    return round(100 * completed / total)


def apply_hard_rules(row: ReviewRow) -> None:
    """Escalate rows missing data an invoice cannot be issued without.

    Checks are independent, so one row can collect both messages.
    """
    if not row.original.destination.strip():
        row.status = RowStatus.ERROR
        row.messages.append(MSG_MISSING_DESTINATION)

    hs_code = row.enriched.hs_code if row.enriched else None
    if not (hs_code or "").strip():
        row.status = RowStatus.ERROR
        row.messages.append(MSG_NOT_CLASSIFIED)


class EnrichmentPipeline:
    """Drives the enrichment and validation calls over an import batch."""

    def __init__(
        self,
        ai_service,
        *,
        duties_payer: DutiesPayer = DutiesPayer.BUYER,
        row_delay_seconds: float = 0.2,
        progress_every: int = 3,
        sleep: Sleep = asyncio.sleep,
    ):
        self.ai_service = ai_service
        self.duties_payer = duties_payer
        self.row_delay_seconds = row_delay_seconds
        self.progress_every = max(1, progress_every)
        self.sleep = sleep

    async def process_row(self, record: RawOrderRecord) -> ReviewRow:
        """Enrich and validate a single record. Never raises."""
        row = ReviewRow(id=record.index, original=record)

        try:
            response = await self.ai_service.enrich(EnrichmentRequest(
                description=record.description,
                quantity=record.quantity,
                total_value=record.total_value,
                origin_country=record.origin,
                destination_country=record.destination,
                duties_payer=self.duties_payer,
            ))
            row.enriched = EnrichedFields(
                hs_code=response.hs_code,
                gross_weight=response.gross_weight,
                net_weight=response.net_weight,
                incoterm=response.incoterm,
                export_reason=response.export_reason or ExportReason.SALE,
                material=response.material,
                intended_use=response.intended_use,
                risk_level=response.risk_level or RiskLevel.LOW,
            )

            validation = await self.ai_service.validate(row.merged_fields())
            if not validation.valid:
                row.status = RowStatus.WARNING
                row.messages = list(validation.warnings) or [MSG_POTENTIAL_MISMATCH]
        except Exception as e:
            logger.warning(
                "Enrichment failed for row %d (order %s): %s",
                record.index, record.order_id, e,
            )
            row.enriched = None
            row.status = RowStatus.ERROR
            row.messages = [MSG_AI_FAILED]
            return row

        apply_hard_rules(row)
        return row

    async def run(
        self,
        records: Sequence[RawOrderRecord],
        on_progress: ProgressCallback | None = None,
    ) -> list[ReviewRow]:
        """Process every record sequentially; returns one ReviewRow per record, in order."""
        total = len(records)
        rows: list[ReviewRow] = []
        logger.info("Enriching %d rows", total)

        if total == 0 and on_progress:
            on_progress(100)

        for i, record in enumerate(records):
            rows.append(await self.process_row(record))

            is_last = i == total - 1
            if on_progress and (i % self.progress_every == 0 or is_last):
                on_progress(progress_percent(i + 1, total))

            if not is_last and self.row_delay_seconds > 0:
                await self.sleep(self.row_delay_seconds)

        counts = {status.value: sum(1 for r in rows if r.status is status) for status in RowStatus}
        logger.info("Enrichment complete: %s", counts)
        return rows
