"""
Session-related models for the Briefdesk runtime.

These describe:
- a BriefingSession (one client's intake conversation)
- BriefingMessage entries (user / assistant)
- SessionStatus enum (active, completed, abandoned)
"""

from enum import Enum
from typing import List, Optional
from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from core.brief.models import Brief, as_utc


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.ACTIVE


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class BriefingMessage(BaseModel):
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator("timestamp", mode="after")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class BriefingSession(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    client_id: str
    status: SessionStatus = SessionStatus.ACTIVE
    messages: List[BriefingMessage] = Field(default_factory=list)
    extracted_brief: Optional[Brief] = None
    context_summary: Optional[str] = None
    job_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    # Records may come from JSON written elsewhere; naive means UTC.
    @field_validator("created_at", "updated_at", "completed_at", mode="after")
    @classmethod
    def _timestamps_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    def append(self, role: MessageRole, content: str) -> BriefingMessage:
        message = BriefingMessage(role=role, content=content)
        self.messages.append(message)
        return message
