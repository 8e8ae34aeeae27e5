from fastapi import Request

from app.bulk_import.service import BulkImportService
from app.config import settings
from app.services.customs_ai_service import CustomsAIService
from app.session.state import SessionState


def get_session(request: Request) -> SessionState:
    return request.app.state.session


def get_customs_ai_service() -> CustomsAIService:
    return CustomsAIService(settings)


def get_bulk_import_service(request: Request) -> BulkImportService:
    # The AI client is shared so background jobs keep using it after the request ends
    service = getattr(request.app.state, "bulk_import_service", None)
    if service is None:
        service = BulkImportService(settings, get_customs_ai_service())
        request.app.state.bulk_import_service = service
    return service
