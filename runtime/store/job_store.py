"""Job and worker storage.

Both collections are owned by other parts of the platform; Briefdesk
creates jobs from submitted briefs and otherwise only performs narrow,
field-level corrective writes from the maintenance tasks.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from ..models.job_models import Job, JobStatus, ReviewFlag, Worker
from ..models.session_models import utcnow
from .document_store import DocumentStore


class JobStore(DocumentStore[Job]):
    """In-memory + optional file-backed job store (`data_dir/jobs/`)."""

    collection = "jobs"
    model = Job

    def get_job(self, job_id: str) -> Optional[Job]:
        return self.get(job_id)

    def save_job(self, job: Job, touch: bool = True) -> Job:
        with self._lock:
            if touch:
                job.updated_at = utcnow()
            return self._put(job)

    def list_jobs(
        self,
        status: Optional[JobStatus] = None,
        worker_id: Optional[str] = None,
        client_id: Optional[str] = None,
        started_before: Optional[datetime] = None,
    ) -> List[Job]:
        def matches(job: Job) -> bool:
            if status is not None and job.status != status:
                return False
            if worker_id is not None and job.worker_id != worker_id:
                return False
            if client_id is not None and job.client_id != client_id:
                return False
            if started_before is not None and (
                job.started_at is None or job.started_at >= started_before
            ):
                return False
            return True

        return self.find(matches)

    def count_for_worker(self, worker_id: str, statuses: Iterable[JobStatus]) -> int:
        wanted = frozenset(statuses)
        return self.count(lambda job: job.worker_id == worker_id and job.status in wanted)

    def completed_ratings(self, worker_id: str) -> List[float]:
        """Positive ratings on the worker's completed jobs."""
        return [
            job.rating
            for job in self.list_jobs(status=JobStatus.COMPLETED, worker_id=worker_id)
            if job.rating is not None and job.rating > 0
        ]

    def flag_for_review(self, job_id: str, reason: str, started_before: datetime) -> bool:
        """Set the review flag on a job that is still stale and unflagged.

        Only the flag changes; the job's status is never touched.
        """
        with self._lock:
            current = self._docs.get(job_id)
            if current is None or current.is_flagged:
                return False
            if current.status != JobStatus.IN_PROGRESS:
                return False
            if current.started_at is None or current.started_at >= started_before:
                return False
            job = current.model_copy(deep=True)
            job.review_flag = ReviewFlag(flagged=True, reason=reason)
            job.updated_at = utcnow()
            self._put(job)
            return True


class WorkerStore(DocumentStore[Worker]):
    """In-memory + optional file-backed worker store (`data_dir/workers/`)."""

    collection = "workers"
    model = Worker

    def get_worker(self, worker_id: str) -> Optional[Worker]:
        return self.get(worker_id)

    def save_worker(self, worker: Worker) -> Worker:
        with self._lock:
            return self._put(worker)

    def list_workers(self, active_only: bool = True) -> List[Worker]:
        return self.find(lambda worker: worker.is_active or not active_only)

    def update_fields(self, worker_id: str, **fields) -> Optional[Worker]:
        """Apply a narrow field update to the stored worker."""
        with self._lock:
            current = self._docs.get(worker_id)
            if current is None:
                return None
            return self._put(current.model_copy(update=fields, deep=True))
