"""Session routes: the host application hands its access token to the uploader."""

import logging

from fastapi import APIRouter, HTTPException

from attachment_uploader.schemas.auth import SessionInfo, SessionRequest
from attachment_uploader.services import get_orchestrator, get_session

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/session", response_model=SessionInfo)
async def session_info():
    session = get_session()
    return SessionInfo(authenticated=session.is_authenticated, user_id=session.user_id)


@router.put("/session", response_model=SessionInfo)
async def sign_in(body: SessionRequest):
    """Store the access token used for queue service calls."""
    if not body.access_token.strip():
        raise HTTPException(400, "access_token must not be empty")
    session = get_session()
    session.sign_in(body.access_token.strip(), body.user_id)
    return SessionInfo(authenticated=True, user_id=session.user_id)


@router.delete("/session", response_model=SessionInfo)
async def sign_out():
    """Drop the token and let in-flight uploads finish."""
    get_session().sign_out()
    await get_orchestrator().stop()
    return SessionInfo(authenticated=False)
