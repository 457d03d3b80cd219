"""Consistency maintenance tasks.

A fixed registry of idempotent sweeps that re-derive denormalized state
from source data and write only what is wrong:

- ratings:     worker avg_rating from ratings on their completed jobs
- briefings:   active sessions idle past the inactivity threshold -> abandoned
- stale_jobs:  jobs in_progress past the age threshold get a review flag
- job_counts:  worker current_job_count from a live count of their open jobs

Each task returns a small summary of counts. A failure on one row is
logged, counted under "failed" and skipped. TaskRunner.run_all() runs
every task and reports each one's summary or error independently.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from exceptions.exceptions import TaskExecutionError, UnknownTaskError
from ..models.job_models import ACTIVE_JOB_STATUSES, JobStatus
from ..store.job_store import JobStore, WorkerStore
from ..store.log_store import LogStore
from ..store.session_store import SessionStore


logger = logging.getLogger(__name__)

TaskSummary = Dict[str, int]


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


def aggregate_worker_ratings(worker_store: WorkerStore, job_store: JobStore) -> TaskSummary:
    """Recompute avg_rating (and completed_jobs) for every active worker.

    Workers without any rated completed job are left untouched.
    """
    processed = updated = failed = 0

    for worker in worker_store.list_workers():
        processed += 1
        try:
            ratings = job_store.completed_ratings(worker.id)
            if not ratings:
                continue

            avg_rating = sum(ratings) / len(ratings)
            if (
                math.isclose(avg_rating, worker.avg_rating, abs_tol=1e-9)
                and worker.completed_jobs == len(ratings)
            ):
                continue

            worker_store.update_fields(
                worker.id,
                avg_rating=avg_rating,
                completed_jobs=len(ratings),
            )
            updated += 1
        except Exception:
            failed += 1
            logger.warning(
                "[MAINTENANCE] Rating aggregation failed for worker_id=%s",
                worker.id,
                exc_info=True,
            )

    logger.info(
        "[MAINTENANCE] Rating aggregation complete: processed=%d updated=%d failed=%d",
        processed,
        updated,
        failed,
    )
    return {"processed": processed, "updated": updated, "failed": failed}


def cleanup_abandoned_briefings(
    session_store: SessionStore,
    now: datetime,
    max_idle: timedelta,
    log_store: Optional[LogStore] = None,
) -> TaskSummary:
    """Abandon active sessions whose last activity is older than `max_idle`."""
    cutoff = now - max_idle
    cleaned = failed = 0

    for session in session_store.find_stale_active(cutoff):
        try:
            if not session_store.abandon_if_stale(session.id, cutoff):
                continue
        except Exception:
            failed += 1
            logger.warning(
                "[MAINTENANCE] Could not abandon session_id=%s",
                session.id,
                exc_info=True,
            )
            continue

        cleaned += 1
        if log_store is not None:
            log_store.log_event(
                event_type="briefing_abandoned",
                payload={
                    "session_id": session.id,
                    "client_id": session.client_id,
                    "status": "abandoned",
                    "reason": "inactive",
                },
            )

    logger.info("[MAINTENANCE] Briefing cleanup complete: cleaned=%d failed=%d", cleaned, failed)
    return {"cleaned": cleaned, "failed": failed}


def flag_stale_jobs(job_store: JobStore, now: datetime, max_age: timedelta) -> TaskSummary:
    """Flag in-progress jobs started before `now - max_age` for human review."""
    cutoff = now - max_age
    reason = f"Job has been in progress for more than {max_age.days} days"
    flagged = failed = 0

    for job in job_store.list_jobs(status=JobStatus.IN_PROGRESS, started_before=cutoff):
        if job.is_flagged:
            continue
        try:
            if job_store.flag_for_review(job.id, reason, cutoff):
                flagged += 1
        except Exception:
            failed += 1
            logger.warning("[MAINTENANCE] Could not flag job_id=%s", job.id, exc_info=True)

    if flagged > 0:
        logger.info("[MAINTENANCE] Flagged stale jobs: flagged=%d", flagged)
    return {"flagged": flagged, "failed": failed}


def sync_worker_job_counts(worker_store: WorkerStore, job_store: JobStore) -> TaskSummary:
    """Fix current_job_count wherever it disagrees with the live count."""
    processed = synced = failed = 0

    for worker in worker_store.list_workers():
        processed += 1
        try:
            active_count = job_store.count_for_worker(worker.id, ACTIVE_JOB_STATUSES)
            if active_count == worker.current_job_count:
                continue
            worker_store.update_fields(worker.id, current_job_count=active_count)
            synced += 1
            logger.debug(
                "[MAINTENANCE] Synced job count for worker_id=%s: was=%d now=%d",
                worker.id,
                worker.current_job_count,
                active_count,
            )
        except Exception:
            failed += 1
            logger.warning(
                "[MAINTENANCE] Job count sync failed for worker_id=%s",
                worker.id,
                exc_info=True,
            )

    if synced > 0:
        logger.info("[MAINTENANCE] Synced worker job counts: synced=%d", synced)
    return {"processed": processed, "synced": synced, "failed": failed}


# ---------------------------------------------------------------------------
# Registry + runner
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MaintenanceTask:
    id: str
    name: str
    description: str
    run: Callable[["TaskRunner"], TaskSummary] = field(repr=False, compare=False)

    def info(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name, "description": self.description}


TASKS = (
    MaintenanceTask(
        id="ratings",
        name="Aggregate Worker Ratings",
        description="Updates avg_rating for all workers based on job ratings",
        run=lambda runner: aggregate_worker_ratings(runner.worker_store, runner.job_store),
    ),
    MaintenanceTask(
        id="briefings",
        name="Cleanup Abandoned Briefings",
        description="Marks briefings inactive >24h as abandoned",
        run=lambda runner: cleanup_abandoned_briefings(
            runner.session_store,
            runner.now(),
            runner.briefing_inactivity,
            runner.log_store,
        ),
    ),
    MaintenanceTask(
        id="stale_jobs",
        name="Flag Stale Jobs",
        description="Flags jobs in_progress >7 days for review",
        run=lambda runner: flag_stale_jobs(runner.job_store, runner.now(), runner.stale_job_age),
    ),
    MaintenanceTask(
        id="job_counts",
        name="Sync Worker Job Counts",
        description="Fixes discrepancies in current_job_count",
        run=lambda runner: sync_worker_job_counts(runner.worker_store, runner.job_store),
    ),
)


@dataclass
class TaskOutcome:
    """Per-task entry of a batch run: a summary or an error, never both."""

    ok: bool
    summary: Optional[TaskSummary] = None
    error: Optional[str] = None


class TaskRunner:
    """Runs maintenance tasks individually or as a batch.

    Parameters
    ----------
    session_store, job_store, worker_store:
        Collections the tasks sweep.
    log_store:
        Optional sink for lifecycle events written by the sweeps.
    clock:
        Returns "now" (injectable for tests).
    """

    def __init__(
        self,
        session_store: SessionStore,
        job_store: JobStore,
        worker_store: WorkerStore,
        log_store: Optional[LogStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
        briefing_inactivity: timedelta = timedelta(hours=24),
        stale_job_age: timedelta = timedelta(days=7),
    ) -> None:
        self.session_store = session_store
        self.job_store = job_store
        self.worker_store = worker_store
        self.log_store = log_store
        self.briefing_inactivity = briefing_inactivity
        self.stale_job_age = stale_job_age
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._tasks: Dict[str, MaintenanceTask] = {task.id: task for task in TASKS}

    def now(self) -> datetime:
        return self._clock()

    @property
    def task_ids(self) -> List[str]:
        return list(self._tasks)

    def list_tasks(self) -> List[Dict[str, str]]:
        """Registry metadata; no side effects."""
        return [task.info() for task in self._tasks.values()]

    def run(self, task_id: str) -> TaskSummary:
        """Run one task.

        Raises
        ------
        UnknownTaskError
            If task_id is not registered.
        TaskExecutionError
            If the task itself fails.
        """
        task = self._tasks.get(task_id)
        if task is None:
            raise UnknownTaskError(task_id, self.task_ids)

        logger.info("[MAINTENANCE] Running task %s", task_id)
        try:
            return task.run(self)
        except Exception as exc:
            logger.exception("[MAINTENANCE] Task %s failed", task_id)
            raise TaskExecutionError(task_id, exc) from exc

    def run_all(self) -> Dict[str, TaskOutcome]:
        """Run every task in registry order; one failure never stops the rest."""
        logger.info("[MAINTENANCE] Starting maintenance run")
        results: Dict[str, TaskOutcome] = {}
        for task_id in self._tasks:
            try:
                results[task_id] = TaskOutcome(ok=True, summary=self.run(task_id))
            except TaskExecutionError as exc:
                results[task_id] = TaskOutcome(ok=False, error=str(exc.cause))

        failed = [task_id for task_id, outcome in results.items() if not outcome.ok]
        logger.info(
            "[MAINTENANCE] Maintenance run complete: %d tasks, failed=%s",
            len(results),
            failed or "none",
        )
        return results
