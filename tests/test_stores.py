"""Tests for the session, job, worker and log stores."""

import json
import threading
from datetime import datetime, timedelta, timezone

import pytest

from core.brief.models import Brief
from exceptions.exceptions import DuplicateActiveSessionError, SessionClosedError
from runtime.models.job_models import Job, JobStatus, Worker
from runtime.models.session_models import BriefingSession, MessageRole, SessionStatus
from runtime.store.job_store import JobStore, WorkerStore
from runtime.store.log_store import LogStore
from runtime.store.session_store import SessionStore

from conftest import NOW


def _new_session(client_id="client-1"):
    return lambda: BriefingSession(client_id=client_id)


# =============================================================================
# SessionStore
# =============================================================================


class TestSessionStoreUniqueness:
    """At most one active session per client."""

    def test_find_or_create_reuses_active(self, session_store):
        first, created = session_store.find_or_create_active("client-1", _new_session())
        again, created_again = session_store.find_or_create_active("client-1", _new_session())

        assert created is True
        assert created_again is False
        assert again.id == first.id

    def test_concurrent_first_messages_share_one_session(self, session_store):
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(session_store.find_or_create_active("client-1", _new_session()))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len({session.id for session, _ in results}) == 1
        assert sum(1 for _, created in results if created) == 1
        assert len(session_store.list_for_client("client-1")) == 1

    def test_second_active_session_is_rejected(self, session_store):
        existing, _ = session_store.find_or_create_active("client-1", _new_session())

        with pytest.raises(DuplicateActiveSessionError) as excinfo:
            session_store.save_session(BriefingSession(client_id="client-1"))

        assert excinfo.value.existing_session_id == existing.id

    def test_other_clients_are_independent(self, session_store):
        a, _ = session_store.find_or_create_active("client-1", _new_session())
        b, _ = session_store.find_or_create_active("client-2", _new_session("client-2"))
        assert a.id != b.id


class TestSessionStoreLifecycle:
    """Terminal states and abandonment."""

    def test_terminal_session_cannot_be_saved_active(self, session_store):
        session, _ = session_store.find_or_create_active("client-1", _new_session())
        session_store.mark_abandoned("client-1")

        session.append(MessageRole.USER, "late message")
        with pytest.raises(SessionClosedError):
            session_store.save_session(session)

        assert session_store.get_session(session.id).status == SessionStatus.ABANDONED

    def test_mark_abandoned_without_active_session(self, session_store):
        assert session_store.mark_abandoned("client-1") is None

    def test_reads_are_copies(self, session_store):
        session, _ = session_store.find_or_create_active("client-1", _new_session())
        session.append(MessageRole.USER, "not saved")

        assert session_store.get_session(session.id).messages == []

    def test_save_touches_updated_at(self, session_store):
        session, _ = session_store.find_or_create_active("client-1", _new_session())
        session.updated_at = NOW - timedelta(days=3)
        saved = session_store.save_session(session)
        assert saved.updated_at > NOW - timedelta(days=3)

        session.updated_at = NOW - timedelta(days=3)
        kept = session_store.save_session(session, touch=False)
        assert kept.updated_at == NOW - timedelta(days=3)

    def test_abandon_if_stale_rechecks_activity(self, session_store):
        session, _ = session_store.find_or_create_active("client-1", _new_session())
        session.updated_at = NOW - timedelta(hours=25)
        session_store.save_session(session, touch=False)
        cutoff = NOW - timedelta(hours=24)

        assert [s.id for s in session_store.find_stale_active(cutoff)] == [session.id]

        # The client writes again before the sweep gets to the session.
        session.updated_at = NOW
        session_store.save_session(session, touch=False)

        assert session_store.abandon_if_stale(session.id, cutoff) is False
        assert session_store.get_session(session.id).status == SessionStatus.ACTIVE


class TestFileBackedStores:
    """Persistence under a data dir."""

    def test_sessions_survive_restart(self, tmp_path):
        store = SessionStore(data_dir=str(tmp_path))
        session, _ = store.find_or_create_active("client-1", _new_session())
        session.append(MessageRole.USER, "Need a logo")
        session.extracted_brief = Brief(title="Logo", category="design")
        store.save_session(session)

        path = tmp_path / "briefings" / f"{session.id}.json"
        assert path.exists()
        assert json.loads(path.read_text(encoding="utf-8"))["client_id"] == "client-1"

        reloaded = SessionStore(data_dir=str(tmp_path)).get_active("client-1")
        assert reloaded.id == session.id
        assert reloaded.messages[0].content == "Need a logo"
        assert reloaded.extracted_brief.title == "Logo"

    def test_unreadable_files_are_skipped(self, tmp_path):
        (tmp_path / "jobs").mkdir()
        (tmp_path / "jobs" / "broken.json").write_text("{not json", encoding="utf-8")

        store = JobStore(data_dir=str(tmp_path))
        store.save_job(Job(id="job-1", client_id="client-1", title="Banner"))

        assert [job.id for job in JobStore(data_dir=str(tmp_path)).all()] == ["job-1"]

    def test_naive_timestamps_on_disk_load_as_utc(self, tmp_path):
        (tmp_path / "jobs").mkdir()
        record = {
            "id": "job-1",
            "client_id": "client-1",
            "title": "Banner",
            "status": "in_progress",
            "created_at": "2026-02-01T09:00:00",
            "updated_at": "2026-02-01T09:00:00",
            "started_at": "2026-02-01T12:00:00",
        }
        (tmp_path / "jobs" / "job-1.json").write_text(json.dumps(record), encoding="utf-8")

        store = JobStore(data_dir=str(tmp_path))

        assert store.get_job("job-1").started_at == datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)
        assert [job.id for job in store.list_jobs(started_before=NOW)] == ["job-1"]


# =============================================================================
# JobStore / WorkerStore
# =============================================================================


class TestJobStore:
    def test_completed_ratings_ignore_unrated_and_zero(self, job_store):
        job_store.save_job(Job(client_id="c", worker_id="w1", title="a", status=JobStatus.COMPLETED, rating=4))
        job_store.save_job(Job(client_id="c", worker_id="w1", title="b", status=JobStatus.COMPLETED, rating=0))
        job_store.save_job(Job(client_id="c", worker_id="w1", title="c", status=JobStatus.COMPLETED))
        job_store.save_job(Job(client_id="c", worker_id="w1", title="d", status=JobStatus.IN_PROGRESS, rating=1))

        assert job_store.completed_ratings("w1") == [4.0]

    def test_flag_for_review_leaves_status(self, job_store):
        job = job_store.save_job(
            Job(
                client_id="c",
                title="Long job",
                status=JobStatus.IN_PROGRESS,
                started_at=NOW - timedelta(days=8),
            )
        )

        assert job_store.flag_for_review(job.id, "stale", NOW - timedelta(days=7)) is True
        assert job_store.flag_for_review(job.id, "stale", NOW - timedelta(days=7)) is False

        stored = job_store.get_job(job.id)
        assert stored.status == JobStatus.IN_PROGRESS
        assert stored.review_flag.reason == "stale"

    def test_worker_update_fields(self, worker_store):
        worker_store.save_worker(Worker(id="w1", name="Ana"))
        updated = worker_store.update_fields("w1", current_job_count=2)

        assert updated.current_job_count == 2
        assert worker_store.get_worker("w1").name == "Ana"
        assert worker_store.update_fields("missing", current_job_count=1) is None

    def test_list_workers_active_only(self, worker_store):
        worker_store.save_worker(Worker(id="w1"))
        worker_store.save_worker(Worker(id="w2", is_active=False))

        assert [w.id for w in worker_store.list_workers()] == ["w1"]
        assert len(worker_store.list_workers(active_only=False)) == 2


class TestLogStore:
    def test_events_appended_as_jsonl(self, tmp_path):
        store = LogStore(log_dir=str(tmp_path))
        store.log_event("briefing_created", {"session_id": "s1"})
        store.log_event("briefing_completed", {"session_id": "s1"})

        files = list(tmp_path.glob("events_*.jsonl"))
        assert len(files) == 1
        records = [json.loads(line) for line in files[0].read_text(encoding="utf-8").splitlines()]
        assert [r["event_type"] for r in records] == ["briefing_created", "briefing_completed"]
        assert records[0]["payload"] == {"session_id": "s1"}

    def test_without_log_dir_nothing_is_written(self, tmp_path):
        LogStore().log_event("briefing_created", {"session_id": "s1"})
        assert list(tmp_path.iterdir()) == []
