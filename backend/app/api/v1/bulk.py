"""Bulk import endpoints: ingest orders, enrich, review and download generated invoices."""

from fastapi import APIRouter, Depends, HTTPException, UploadFile
from fastapi.responses import Response

from app.bulk_import.errors import (
    AuthenticationRequired,
    BatchInProgress,
    InvalidBatchState,
    MalformedUpload,
    NoValidRows,
)
from app.bulk_import.ingestion import build_template_xlsx
from app.bulk_import.packaging import SUMMARY_FILENAME, archive_filename, safe_name
from app.bulk_import.service import BulkImportService
from app.config import settings
from app.dependencies import get_bulk_import_service, get_session
from app.schemas.bulk import (
    BatchStatusResponse,
    FieldUpdateRequest,
    ImportStep,
    IngestResponse,
    PasteRequest,
    RowListResponse,
)
from app.schemas.shipment import ReviewRow
from app.services.document_service import content_disposition, get_file_extension, get_mime_type
from app.session.state import ImportBatch, SessionState

router = APIRouter()


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, AuthenticationRequired):
        return HTTPException(status_code=401, detail=str(e))
    if isinstance(e, (BatchInProgress, InvalidBatchState)):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def _attachment(content: bytes | str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=get_mime_type(filename),
        headers={"Content-Disposition": content_disposition(filename)},
    )


def _ingest_response(batch: ImportBatch) -> IngestResponse:
    return IngestResponse(records=batch.records, total=len(batch.records), step=batch.step)


@router.get("/template")
async def download_template() -> Response:
    return _attachment(build_template_xlsx(), "customs_import_template.xlsx")


@router.post("/upload", response_model=IngestResponse, status_code=201)
async def upload_orders(
    file: UploadFile,
    session: SessionState = Depends(get_session),
    service: BulkImportService = Depends(get_bulk_import_service),
) -> IngestResponse:
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    file_ext = get_file_extension(file.filename)
    if file_ext not in settings.allowed_file_types:
        raise HTTPException(
            status_code=400,
            detail=f"File type '{file_ext}' not allowed. Allowed: {', '.join(sorted(settings.allowed_file_types))}",
        )

    content = await file.read()
    if len(content) > settings.max_upload_size_mb * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size: {settings.max_upload_size_mb}MB",
        )

    try:
        batch = service.ingest(session, content, filename=file.filename)
    except (MalformedUpload, NoValidRows, BatchInProgress) as e:
        raise _http_error(e)
    return _ingest_response(batch)


@router.post("/paste", response_model=IngestResponse, status_code=201)
async def paste_orders(
    request: PasteRequest,
    session: SessionState = Depends(get_session),
    service: BulkImportService = Depends(get_bulk_import_service),
) -> IngestResponse:
    if not request.text.strip():
        raise HTTPException(status_code=400, detail="No order data provided")
    try:
        batch = service.ingest(session, request.text)
    except (MalformedUpload, NoValidRows, BatchInProgress) as e:
        raise _http_error(e)
    return _ingest_response(batch)


@router.post("/enrich", response_model=BatchStatusResponse, status_code=202)
async def start_enrichment(
    session: SessionState = Depends(get_session),
    service: BulkImportService = Depends(get_bulk_import_service),
) -> BatchStatusResponse:
    try:
        service.start_enrichment(session)
    except (BatchInProgress, InvalidBatchState) as e:
        raise _http_error(e)
    return _status(session)


@router.get("/status", response_model=BatchStatusResponse)
async def get_status(session: SessionState = Depends(get_session)) -> BatchStatusResponse:
    return _status(session)


def _status(session: SessionState) -> BatchStatusResponse:
    batch = session.batch
    if batch is None:
        return BatchStatusResponse(step=ImportStep.UPLOAD)

    job = batch.job
    return BatchStatusResponse(
        step=batch.step,
        progress=job.progress if job else 0,
        done=not batch.busy,
        error=job.error if job else None,
        total_rows=len(batch.records),
        counts=batch.store.counts(),
    )


@router.get("/rows", response_model=RowListResponse)
async def list_rows(
    search: str = "",
    status: str = "all",
    session: SessionState = Depends(get_session),
) -> RowListResponse:
    """Rows of the current batch, filtered by search term and status (OK, Warning, Error or all)."""
    if session.batch is None:
        raise HTTPException(status_code=404, detail="No import batch")
    try:
        rows = session.batch.store.filter(search, status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid status filter: {status}") from e
    return RowListResponse(rows=rows, total=len(rows))


@router.patch("/rows/{row_id}", response_model=ReviewRow)
async def update_row(
    row_id: int,
    request: FieldUpdateRequest,
    session: SessionState = Depends(get_session),
    service: BulkImportService = Depends(get_bulk_import_service),
) -> ReviewRow:
    """Manually correct one enriched field. The row becomes OK and its messages are cleared."""
    try:
        row = service.update_field(session, row_id, request.field, request.value)
    except (BatchInProgress, InvalidBatchState) as e:
        raise _http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if row is None:
        raise HTTPException(status_code=404, detail="Row not found or has no enriched data")
    return row


@router.post("/generate", response_model=BatchStatusResponse, status_code=202)
async def start_generation(
    session: SessionState = Depends(get_session),
    service: BulkImportService = Depends(get_bulk_import_service),
) -> BatchStatusResponse:
    try:
        service.start_generation(session)
    except (BatchInProgress, InvalidBatchState) as e:
        raise _http_error(e)
    return _status(session)


@router.get("/documents/{row_id}")
async def get_document(row_id: int, session: SessionState = Depends(get_session)) -> Response:
    row = session.batch.store.get(row_id) if session.batch else None
    if row is None or not row.document_handle:
        raise HTTPException(status_code=404, detail="No invoice generated for this row")
    document = session.documents.get(row.document_handle)
    filename = f"{safe_name(row.original.order_id)}_invoice.pdf"
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": content_disposition(filename, "inline")},
    )


@router.get("/export/archive")
async def export_archive(
    session: SessionState = Depends(get_session),
    service: BulkImportService = Depends(get_bulk_import_service),
) -> Response:
    try:
        content = service.export_archive(session)
    except (AuthenticationRequired, InvalidBatchState) as e:
        raise _http_error(e)
    return _attachment(content, archive_filename())


@router.get("/export/summary")
async def export_summary(
    session: SessionState = Depends(get_session),
    service: BulkImportService = Depends(get_bulk_import_service),
) -> Response:
    try:
        content = service.export_summary(session)
    except (AuthenticationRequired, InvalidBatchState) as e:
        raise _http_error(e)
    return _attachment(content, SUMMARY_FILENAME)
