"""
HTTP request/response models for the Briefdesk runtime API.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from core.brief.models import Brief
from .session_models import BriefingMessage


# ---------------------------------------------------------------------------
# Briefing
# ---------------------------------------------------------------------------


class SendMessageRequest(BaseModel):
    # Left untyped so that a non-text message is answered with a 400 from
    # the agent's own validation rather than a framework 422.
    message: Any = None
    briefing_id: Optional[str] = None


class SendMessageResponse(BaseModel):
    """Reply to one client message.

    `extracted_brief`, `is_complete` and `missing_fields` all come from the
    same extraction pass. If that pass failed, `extracted_brief` is null
    even though the session keeps its last good brief (GET /briefing).
    """

    briefing_id: str
    message: str
    extracted_brief: Optional[Brief] = None
    is_complete: bool
    missing_fields: List[str] = Field(default_factory=list)


class BriefingView(BaseModel):
    briefing_id: str
    status: str
    messages: List[BriefingMessage]
    extracted_brief: Optional[Brief] = None
    created_at: datetime
    updated_at: datetime


class AbandonResponse(BaseModel):
    success: bool = True
    message: str = "Briefing session reset"


class SubmitRequest(BaseModel):
    briefing_id: str


class SubmitResponse(BaseModel):
    job_id: str
    title: str
    category: Optional[str] = None
    priority: str
    status: str


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------


class RunTaskRequest(BaseModel):
    task: Optional[str] = None


class TaskInfo(BaseModel):
    id: str
    name: str
    description: str


class TaskListResponse(BaseModel):
    tasks: List[TaskInfo]


class TaskOutcomeModel(BaseModel):
    """
    One task's entry in a run response:

    - ok=True:  summary holds the task's counts
    - ok=False: error holds the failure message
    """
    ok: bool
    summary: Optional[Dict[str, int]] = None
    error: Optional[str] = None


class RunTaskResponse(BaseModel):
    task: Optional[str] = None
    results: Dict[str, TaskOutcomeModel]
    message: str
