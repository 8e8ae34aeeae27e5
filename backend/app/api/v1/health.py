from datetime import datetime, timezone

from fastapi import APIRouter

from app.config import settings
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    ai_status = "configured" if settings.anthropic_api_key else "missing_api_key"
    overall = "healthy" if ai_status == "configured" else "degraded"

    return HealthResponse(
        status=overall,
        ai_service=ai_status,
        timestamp=datetime.now(timezone.utc),
        environment=settings.environment,
        version="0.1.0",
    )
