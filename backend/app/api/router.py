from fastapi import APIRouter

from app.api.v1 import bulk, extractions, health, session, shipments

api_router = APIRouter()

api_router.include_router(health.router, prefix="/v1", tags=["health"])
api_router.include_router(session.router, prefix="/v1/session", tags=["session"])
api_router.include_router(bulk.router, prefix="/v1/bulk", tags=["bulk"])
api_router.include_router(extractions.router, prefix="/v1/extractions", tags=["extractions"])
api_router.include_router(shipments.router, prefix="/v1/shipments", tags=["shipments"])
