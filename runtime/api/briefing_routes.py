"""HTTP routes for briefing conversations.

Exposes endpoints like:

- POST   /briefing         -> send a message (creates the session if needed)
- GET    /briefing         -> the caller's active session, or null
- DELETE /briefing         -> abandon the active session (idempotent)
- POST   /briefing/submit  -> turn a completed brief into a pending job

All endpoints require a client identity (see runtime.api.auth).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from exceptions.exceptions import BriefdeskError
from ..agents.briefing_agent import BriefingAgent
from ..models.api_models import (
    AbandonResponse,
    BriefingView,
    SendMessageRequest,
    SendMessageResponse,
    SubmitRequest,
    SubmitResponse,
)
from .auth import Identity, require_client
from .errors import to_http_error


logger = logging.getLogger(__name__)

# Router for all briefing endpoints
router = APIRouter()


# Module-level reference, to be initialized by the server.
_BRIEFING_AGENT: Optional[BriefingAgent] = None


def init_routes(briefing_agent: BriefingAgent) -> None:
    """Initialize module-level references used by the route handlers."""
    global _BRIEFING_AGENT
    _BRIEFING_AGENT = briefing_agent


def _require_agent() -> BriefingAgent:
    if _BRIEFING_AGENT is None:
        raise HTTPException(
            status_code=500,
            detail="BriefingAgent is not configured on the server.",
        )
    return _BRIEFING_AGENT


@router.post("", response_model=SendMessageResponse)
def send_message(
    request: SendMessageRequest,
    identity: Identity = Depends(require_client),
) -> SendMessageResponse:
    """Handle one client message and return the assistant's reply.

    The response carries the freshly extracted brief, whether it is
    complete, and which fields are still missing.
    """
    agent = _require_agent()
    try:
        result = agent.send_message(
            client_id=identity.id,
            message=request.message,
            session_id=request.briefing_id,
        )
    except BriefdeskError as e:
        raise to_http_error(e, "send_message", identity.id)
    except Exception:
        logger.exception(
            "[BRIEFING] Unexpected error for client_id=%s briefing_id=%s",
            identity.id,
            request.briefing_id,
        )
        raise HTTPException(status_code=500, detail="Internal server error")

    return SendMessageResponse(
        briefing_id=result.session.id,
        message=result.assistant_message,
        extracted_brief=result.extraction.brief,
        is_complete=result.extraction.is_complete,
        missing_fields=result.extraction.missing_fields,
    )


@router.get("", response_model=Optional[BriefingView])
def get_briefing(identity: Identity = Depends(require_client)) -> Optional[BriefingView]:
    """Return the active session, or null so the client can start a new one."""
    agent = _require_agent()
    try:
        session = agent.get_active(identity.id)
    except BriefdeskError as e:
        raise to_http_error(e, "get_briefing", identity.id)

    if session is None:
        return None

    return BriefingView(
        briefing_id=session.id,
        status=session.status.value,
        messages=session.messages,
        extracted_brief=session.extracted_brief,
        created_at=session.created_at,
        updated_at=session.updated_at,
    )


@router.delete("", response_model=AbandonResponse)
def reset_briefing(identity: Identity = Depends(require_client)) -> AbandonResponse:
    """Abandon the active session. Succeeds even when there is none."""
    agent = _require_agent()
    try:
        agent.abandon(identity.id)
    except BriefdeskError as e:
        raise to_http_error(e, "reset_briefing", identity.id)
    return AbandonResponse()


@router.post("/submit", response_model=SubmitResponse)
def submit_briefing(
    request: SubmitRequest,
    identity: Identity = Depends(require_client),
) -> SubmitResponse:
    """Create the job for a completed briefing (once; repeats return it)."""
    agent = _require_agent()
    try:
        job = agent.submit(client_id=identity.id, session_id=request.briefing_id)
    except BriefdeskError as e:
        raise to_http_error(e, "submit_briefing", identity.id)

    logger.info("[BRIEFING] Job %s created from briefing %s", job.id, request.briefing_id)
    return SubmitResponse(
        job_id=job.id,
        title=job.title,
        category=job.category,
        priority=job.priority,
        status=job.status.value,
    )
