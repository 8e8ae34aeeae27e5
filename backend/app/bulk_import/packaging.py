"""Export packaging: invoice archive and flat summary table for a batch."""

import csv
import io
import logging
import re
import zipfile
from collections.abc import Iterable
from datetime import date

from app.bulk_import.errors import AuthenticationRequired
from app.documents.store import DocumentStore
from app.schemas.shipment import ExporterProfile, ReviewRow

logger = logging.getLogger("clearpath.packaging")

ARCHIVE_FOLDER = "invoices"
SUMMARY_FILENAME = "enriched_data.csv"
SUMMARY_HEADER = ["Order ID", "Description", "HS Code", "Weight", "Incoterm", "Status"]


def require_exporter(session) -> ExporterProfile:
    """Gate for downloads: anonymous sessions get the login prompt instead of a file."""
    if session.exporter is None:
        session.request_authentication()
        raise AuthenticationRequired()
    return session.exporter


def archive_filename(today: date | None = None) -> str:
    return f"bulk_invoices_{(today or date.today()).isoformat()}.zip"


def safe_name(order_id: str) -> str:
    return re.sub(r"[\\/:*?\"<>|\s]+", "_", order_id).strip("._") or "order"


def archive_entry_names(rows: Iterable[ReviewRow]) -> dict[int, str]:
    """Row id -> archive path, derived from the order id; collisions get the row id appended."""
    names: dict[int, str] = {}
    used: set[str] = set()
    for row in rows:
        stem = safe_name(row.original.order_id)
        name = f"{ARCHIVE_FOLDER}/{stem}_invoice.pdf"
        if name in used:
            name = f"{ARCHIVE_FOLDER}/{stem}-{row.id}_invoice.pdf"
        used.add(name)
        names[row.id] = name
    return names


def build_archive(rows: Iterable[ReviewRow], documents: DocumentStore) -> bytes:
    """Zip every row's rendered invoice. Rows without a document are left out."""
    with_docs = [row for row in rows if row.document_handle]
    names = archive_entry_names(with_docs)

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        for row in with_docs:
            archive.writestr(names[row.id], documents.fetch(row.document_handle))

    logger.info("Built invoice archive with %d entries", len(with_docs))
    return buffer.getvalue()


def _format_weight(weight: float | None) -> str:
    if weight is None:
        return ""
    return str(int(weight)) if float(weight).is_integer() else str(weight)


def build_summary_csv(rows: Iterable[ReviewRow]) -> str:
    """One line per row, Error rows included."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(SUMMARY_HEADER)
    for row in rows:
        enriched = row.enriched
        writer.writerow([
            row.original.order_id,
            row.original.description,
            (enriched.hs_code or "") if enriched else "",
            _format_weight(enriched.gross_weight) if enriched else "",
            enriched.incoterm.value if enriched and enriched.incoterm else "",
            row.status.value,
        ])
    return buffer.getvalue()
