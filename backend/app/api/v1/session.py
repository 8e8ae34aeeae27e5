"""Exporter sign-in toggle. Downloads are refused until an exporter is signed in."""

from fastapi import APIRouter, Depends

from app.dependencies import get_session
from app.schemas.session import LoginRequest, SessionResponse
from app.session.state import SessionState

router = APIRouter()


def _to_response(session: SessionState) -> SessionResponse:
    return SessionResponse(
        authenticated=session.authenticated,
        exporter=session.exporter,
        login_prompt_open=session.login_prompt_open,
        shipments_count=len(session.shipments),
    )


@router.get("", response_model=SessionResponse)
async def get_session_info(session: SessionState = Depends(get_session)) -> SessionResponse:
    return _to_response(session)


@router.post("/login", response_model=SessionResponse)
async def login(request: LoginRequest, session: SessionState = Depends(get_session)) -> SessionResponse:
    session.login(request.email)
    return _to_response(session)


@router.post("/logout", response_model=SessionResponse)
async def logout(session: SessionState = Depends(get_session)) -> SessionResponse:
    session.logout()
    return _to_response(session)
