"""HTTP routes for the maintenance task runner.

- GET  /admin/scheduled  -> registry metadata (admin only)
- POST /admin/scheduled  -> run all tasks, or one with {"task": "<id>"}

POST accepts either the scheduler's X-Cron-Secret or an admin identity.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from exceptions.exceptions import BriefdeskError
from ..models.api_models import (
    RunTaskRequest,
    RunTaskResponse,
    TaskInfo,
    TaskListResponse,
    TaskOutcomeModel,
)
from ..tasks.maintenance import TaskRunner
from .auth import Identity, require_admin, require_maintenance_caller
from .errors import to_http_error


logger = logging.getLogger(__name__)

router = APIRouter()


_TASK_RUNNER: Optional[TaskRunner] = None


def init_routes(task_runner: TaskRunner) -> None:
    """Initialize module-level references used by the route handlers."""
    global _TASK_RUNNER
    _TASK_RUNNER = task_runner


def _require_runner() -> TaskRunner:
    if _TASK_RUNNER is None:
        raise HTTPException(
            status_code=500,
            detail="TaskRunner is not configured on the server.",
        )
    return _TASK_RUNNER


@router.get("", response_model=TaskListResponse)
def list_tasks(identity: Identity = Depends(require_admin)) -> TaskListResponse:
    runner = _require_runner()
    return TaskListResponse(tasks=[TaskInfo(**info) for info in runner.list_tasks()])


@router.post("", response_model=RunTaskResponse)
def run_tasks(
    request: Optional[RunTaskRequest] = Body(default=None),
    caller: str = Depends(require_maintenance_caller),
) -> RunTaskResponse:
    """Run one task or the whole batch.

    A single task that fails answers with a 500. In a batch run each
    task's failure is reported in its own entry and the call succeeds.
    """
    runner = _require_runner()
    task_id = request.task if request is not None else None

    if task_id:
        try:
            summary = runner.run(task_id)
        except BriefdeskError as e:
            raise to_http_error(e, f"run_task:{task_id}", caller)
        logger.info("[MAINTENANCE] Task %s run by %s: %s", task_id, caller, summary)
        return RunTaskResponse(
            task=task_id,
            results={task_id: TaskOutcomeModel(ok=True, summary=summary)},
            message=f"Task '{task_id}' completed",
        )

    outcomes = runner.run_all()
    failed = [name for name, outcome in outcomes.items() if not outcome.ok]
    logger.info("[MAINTENANCE] Batch run by %s, failed=%s", caller, failed or "none")
    message = "All scheduled tasks completed"
    if failed:
        message = f"Scheduled tasks completed with failures: {', '.join(failed)}"
    return RunTaskResponse(
        task=None,
        results={
            name: TaskOutcomeModel(ok=outcome.ok, summary=outcome.summary, error=outcome.error)
            for name, outcome in outcomes.items()
        },
        message=message,
    )
