"""
Job and worker records consulted by the briefing flow and repaired by the
maintenance tasks. Their full lifecycle is owned elsewhere; only the
fields Briefdesk reads or derives are modelled here.
"""

from enum import Enum
from typing import Optional
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from core.brief.models import as_utc

from .session_models import utcnow


class JobStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    REVISION = "revision"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that still count against a worker's current load.
ACTIVE_JOB_STATUSES = frozenset(
    {
        JobStatus.ASSIGNED,
        JobStatus.IN_PROGRESS,
        JobStatus.REVIEW,
        JobStatus.REVISION,
    }
)

TERMINAL_JOB_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.CANCELLED})


class ReviewFlag(BaseModel):
    flagged: bool = True
    reason: Optional[str] = None
    flagged_at: datetime = Field(default_factory=utcnow)

    @field_validator("flagged_at", mode="after")
    @classmethod
    def _flagged_at_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class Job(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    client_id: str
    worker_id: Optional[str] = None
    title: str
    description: str = ""
    category: Optional[str] = None
    priority: str = "standard"
    status: JobStatus = JobStatus.PENDING
    rating: Optional[float] = None
    review_flag: Optional[ReviewFlag] = None
    estimated_hours: Optional[float] = None
    context_from_past_work: Optional[str] = None
    briefing_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at", "started_at", "completed_at", mode="after")
    @classmethod
    def _timestamps_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Jobs are also written by other services; naive means UTC.
        return as_utc(value)

    @property
    def is_flagged(self) -> bool:
        return bool(self.review_flag and self.review_flag.flagged)


class Worker(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: Optional[str] = None
    is_active: bool = True
    avg_rating: float = 0.0
    completed_jobs: int = 0
    current_job_count: int = 0
