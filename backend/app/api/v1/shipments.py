from fastapi import APIRouter, Depends

from app.dependencies import get_session
from app.schemas.shipment import FinalizedShipment
from app.session.state import SessionState

router = APIRouter()


@router.get("", response_model=list[FinalizedShipment])
async def list_shipments(session: SessionState = Depends(get_session)) -> list[FinalizedShipment]:
    """Shipments generated in this session, newest first."""
    return session.shipments
