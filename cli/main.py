#!/usr/bin/env python3
"""
Briefdesk CLI

Operational entry points for the briefing runtime:

1) serve
   - Start the FastAPI server (briefing + maintenance routes) with uvicorn.

2) tasks list
   - Print the maintenance task registry.

3) tasks run [--task <id>]
   - Run one maintenance task, or the whole batch when no task is given.

4) schedule [--interval <seconds>]
   - Run the maintenance batch in the foreground every interval seconds,
     for hosts without an external cron.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from configs.settings import settings
from exceptions.exceptions import BriefdeskError


def _configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _build_runner():
    # Lazy import so `--help` works without touching the data dir.
    from runtime.services import build_services

    return build_services().task_runner


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


def cmd_serve(host: str, port: int, reload: bool) -> None:
    import uvicorn

    print(f"[Briefdesk] Starting runtime server on http://{host}:{port}")
    uvicorn.run("runtime.api.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# tasks
# ---------------------------------------------------------------------------


def cmd_tasks_list() -> None:
    runner = _build_runner()
    for info in runner.list_tasks():
        print(f"[Briefdesk] {info['id']:<12} {info['name']}: {info['description']}")


def cmd_tasks_run(task_id: str | None) -> int:
    runner = _build_runner()

    if task_id:
        print(f"[Briefdesk] Running task '{task_id}'...")
        try:
            summary = runner.run(task_id)
        except BriefdeskError as e:
            print(f"[Briefdesk] ✗ {e.message}")
            return 1
        print(f"[Briefdesk] ✓ {task_id}: {json.dumps(summary)}")
        return 0

    print("[Briefdesk] Running all maintenance tasks...")
    outcomes = runner.run_all()
    exit_code = 0
    for name, outcome in outcomes.items():
        if outcome.ok:
            print(f"[Briefdesk] ✓ {name}: {json.dumps(outcome.summary)}")
        else:
            exit_code = 1
            print(f"[Briefdesk] ✗ {name}: {outcome.error}")
    return exit_code


# ---------------------------------------------------------------------------
# schedule
# ---------------------------------------------------------------------------


def cmd_schedule(interval: int) -> None:
    from runtime.tasks.scheduler import MaintenanceScheduler

    scheduler = MaintenanceScheduler(_build_runner(), interval_seconds=interval)
    print(f"[Briefdesk] Running maintenance every {interval}s (Ctrl+C to stop)")
    try:
        scheduler.run_forever()
    except KeyboardInterrupt:
        print("\n[Briefdesk] Scheduler stopped")


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Briefdesk CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve
    p_serve = subparsers.add_parser("serve", help="Start the runtime API server")
    p_serve.add_argument("--host", default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=8000)
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    # tasks
    p_tasks = subparsers.add_parser("tasks", help="Inspect or run maintenance tasks")
    task_sub = p_tasks.add_subparsers(dest="tasks_command", required=True)
    task_sub.add_parser("list", help="List registered maintenance tasks")
    p_run = task_sub.add_parser("run", help="Run one task, or all when --task is omitted")
    p_run.add_argument("--task", default=None, help="Task id (e.g. ratings, briefings)")

    # schedule
    p_schedule = subparsers.add_parser(
        "schedule", help="Run all maintenance tasks periodically in the foreground"
    )
    p_schedule.add_argument(
        "--interval",
        type=int,
        default=settings.maintenance_interval_seconds,
        help=(
            "Seconds between runs "
            "(default: BRIEFDESK_MAINTENANCE_INTERVAL_SECONDS or 3600)"
        ),
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging()

    command: str = args.command

    if command == "serve":
        cmd_serve(host=args.host, port=args.port, reload=args.reload)
    elif command == "tasks":
        if args.tasks_command == "list":
            cmd_tasks_list()
        else:
            return cmd_tasks_run(task_id=args.task)
    elif command == "schedule":
        cmd_schedule(interval=args.interval)
    else:
        parser.error(f"Unknown command: {command}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
