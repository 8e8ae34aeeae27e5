import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.router import api_router
from app.config import settings
from app.middleware.logging import RequestLoggingMiddleware
from app.session.state import SessionState

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
)

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.anthropic_api_key:
        logger.warning("ANTHROPIC_API_KEY is not set; enrichment calls will fail per row")

    logger.info("Starting ClearPath backend (env=%s)", settings.environment)
    yield
    logger.info("Shutting down ClearPath backend")


app = FastAPI(
    title="ClearPath - Commercial Invoice Automation",
    description="Claude-assisted customs enrichment and bulk commercial-invoice generation",
    version=VERSION,
    lifespan=lifespan,
)

# Session state lives for the lifetime of the process
app.state.session = SessionState()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Request-ID"],
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router, prefix="/api")
