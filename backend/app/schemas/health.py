from datetime import datetime

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    ai_service: str
    timestamp: datetime
    environment: str
    version: str
