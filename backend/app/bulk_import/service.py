"""Stage machine for one session's import batch.

UPLOAD -> ENRICHING -> REVIEW -> GENERATING -> COMPLETE. Enrichment and
generation run as background BatchJobs; only one job runs per session.
"""

import asyncio
import logging
from typing import Any

from app.bulk_import.emission import DocumentEmitter
from app.bulk_import.enrichment import EnrichmentPipeline, Sleep
from app.bulk_import.errors import BatchInProgress, InvalidBatchState
from app.bulk_import.ingestion import ingest
from app.bulk_import.jobs import BatchJob, ProgressCallback
from app.bulk_import.packaging import build_archive, build_summary_csv, require_exporter
from app.config import Settings
from app.documents.renderer import InvoiceRenderer
from app.schemas.bulk import ImportStep
from app.schemas.shipment import DutiesPayer, ReviewRow
from app.session.state import ImportBatch, SessionState

logger = logging.getLogger("clearpath.bulk_import")

EDITABLE_STEPS = (ImportStep.REVIEW, ImportStep.COMPLETE)


class BulkImportService:
    def __init__(self, settings: Settings, ai_service, *, sleep: Sleep = asyncio.sleep):
        self.settings = settings
        self.ai_service = ai_service
        self.sleep = sleep

    # -- helpers --

    @staticmethod
    def _require_batch(session: SessionState) -> ImportBatch:
        if session.batch is None:
            raise InvalidBatchState("No import batch. Upload orders first.")
        return session.batch

    def _require_idle(self, session: SessionState) -> ImportBatch:
        batch = self._require_batch(session)
        if batch.busy:
            raise BatchInProgress()
        return batch

    # -- stages --

    def ingest(self, session: SessionState, content: bytes | str, filename: str | None = None) -> ImportBatch:
        """Parse an upload and start a new batch with it.

        Raises:
            MalformedUpload, NoValidRows: The upload is rejected; the current batch is kept.
            BatchInProgress: A job of the current batch is still running.
        """
        if session.batch is not None and session.batch.busy:
            raise BatchInProgress()

        records = ingest(
            content,
            filename=filename,
            default_origin=session.default_origin(self.settings.default_origin),
            default_unit_price=self.settings.default_unit_price,
        )
        return session.start_batch(records)

    def start_enrichment(self, session: SessionState) -> BatchJob:
        batch = self._require_idle(session)
        if batch.step != ImportStep.UPLOAD:
            raise InvalidBatchState(f"Cannot start enrichment from step {batch.step.value}")

        pipeline = EnrichmentPipeline(
            self.ai_service,
            duties_payer=DutiesPayer(self.settings.duties_payer),
            row_delay_seconds=self.settings.enrichment_row_delay_ms / 1000,
            progress_every=self.settings.progress_report_every,
            sleep=self.sleep,
        )

        async def runner(report: ProgressCallback) -> list[ReviewRow]:
            try:
                rows = await pipeline.run(batch.records, on_progress=report)
            except Exception:
                batch.step = ImportStep.UPLOAD
                raise
            batch.store.load(rows)
            batch.step = ImportStep.REVIEW
            return rows

        batch.step = ImportStep.ENRICHING
        batch.job = BatchJob(f"enrich-{len(batch.records)}-rows").start(runner)
        return batch.job

    def update_field(self, session: SessionState, row_id: int, field: str, value: Any) -> ReviewRow | None:
        batch = self._require_idle(session)
        if batch.step not in EDITABLE_STEPS:
            raise InvalidBatchState(f"Rows cannot be edited during step {batch.step.value}")
        return batch.store.update_field(row_id, field, value)

    def start_generation(self, session: SessionState) -> BatchJob:
        batch = self._require_idle(session)
        if batch.step not in EDITABLE_STEPS:
            raise InvalidBatchState(f"Cannot generate invoices from step {batch.step.value}")

        renderer = InvoiceRenderer(session.documents)
        emitter = DocumentEmitter(
            renderer.render,
            currency=self.settings.default_currency,
            row_delay_seconds=self.settings.emission_row_delay_ms / 1000,
            sleep=self.sleep,
        )
        previous_step = batch.step

        async def runner(report: ProgressCallback):
            try:
                shipments = await emitter.emit(batch.store, session.effective_exporter(), on_progress=report)
            except Exception:
                batch.step = previous_step
                raise
            for shipment in shipments:
                session.add_shipment(shipment)
            batch.step = ImportStep.COMPLETE
            return shipments

        batch.step = ImportStep.GENERATING
        batch.job = BatchJob("generate-invoices").start(runner)
        return batch.job

    # -- exports --

    def export_archive(self, session: SessionState) -> bytes:
        require_exporter(session)
        batch = self._require_batch(session)
        return build_archive(batch.store.rows, session.documents)

    def export_summary(self, session: SessionState) -> str:
        require_exporter(session)
        batch = self._require_batch(session)
        return build_summary_csv(batch.store.rows)
