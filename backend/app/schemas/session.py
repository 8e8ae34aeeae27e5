from pydantic import BaseModel

from app.schemas.shipment import ExporterProfile


class LoginRequest(BaseModel):
    email: str


class SessionResponse(BaseModel):
    authenticated: bool
    exporter: ExporterProfile | None = None
    login_prompt_open: bool = False
    shipments_count: int = 0
