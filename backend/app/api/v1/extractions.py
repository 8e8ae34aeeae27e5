"""Single-entry path: pull shipment fields out of a pasted order."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.dependencies import get_customs_ai_service
from app.schemas.ai import ExtractedOrder
from app.services.customs_ai_service import CustomsAIService

router = APIRouter()


class ExtractionRequest(BaseModel):
    text: str


class ExtractionResponse(BaseModel):
    extracted: ExtractedOrder | None = None


@router.post("", response_model=ExtractionResponse)
async def extract_order(
    request: ExtractionRequest,
    ai_service: CustomsAIService = Depends(get_customs_ai_service),
) -> ExtractionResponse:
    return ExtractionResponse(extracted=await ai_service.extract(request.text))
