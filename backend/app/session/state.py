"""Everything the browser session owns, held in memory.

One SessionState per application instance. Nothing here outlives the process.
"""

import logging
from dataclasses import dataclass, field

from app.bulk_import.jobs import BatchJob
from app.bulk_import.review import ReviewStore
from app.documents.store import DocumentStore
from app.schemas.bulk import ImportStep
from app.schemas.shipment import (
    ANONYMOUS_EXPORTER,
    ExporterProfile,
    FinalizedShipment,
    RawOrderRecord,
)

logger = logging.getLogger("clearpath.session")


def demo_exporter(email: str) -> ExporterProfile:
    return ExporterProfile(
        id="user_1",
        email=email,
        company_name="Acme Traders",
        address="123 Export Lane, New York, NY 10001, USA",
        tax_id="US-EIN-99-999999",
        default_origin="USA",
        subscription_tier="FREE",
        shipments_count=2,
    )


@dataclass
class ImportBatch:
    """One bulk import, from upload to download."""

    records: list[RawOrderRecord]
    step: ImportStep = ImportStep.UPLOAD
    store: ReviewStore = field(default_factory=ReviewStore)
    job: BatchJob | None = None

    @property
    def busy(self) -> bool:
        return self.job is not None and self.job.running


class SessionState:
    def __init__(self):
        self.exporter: ExporterProfile | None = None
        self.login_prompt_open = False
        self.shipments: list[FinalizedShipment] = []
        self.documents = DocumentStore()
        self.batch: ImportBatch | None = None

    # -- identity --

    @property
    def authenticated(self) -> bool:
        return self.exporter is not None

    def login(self, email: str) -> ExporterProfile:
        self.exporter = demo_exporter(email)
        self.login_prompt_open = False
        logger.info("Exporter signed in: %s", email)
        return self.exporter

    def logout(self) -> None:
        self.exporter = None
        logger.info("Exporter signed out")

    def request_authentication(self) -> None:
        self.login_prompt_open = True

    def effective_exporter(self) -> ExporterProfile:
        """The signed-in exporter, or the anonymous placeholder used for previews."""
        return self.exporter or ANONYMOUS_EXPORTER

    def default_origin(self, fallback: str) -> str:
        return self.exporter.default_origin if self.exporter else fallback

    # -- shipment history --

    def add_shipment(self, shipment: FinalizedShipment) -> None:
        self.shipments.insert(0, shipment)
        if self.exporter is not None:
            self.exporter = self.exporter.model_copy(
                update={"shipments_count": self.exporter.shipments_count + 1}
            )

    # -- bulk import --

    def start_batch(self, records: list[RawOrderRecord]) -> ImportBatch:
        """Replace the current batch with freshly ingested records."""
        self.batch = ImportBatch(records=records)
        return self.batch
