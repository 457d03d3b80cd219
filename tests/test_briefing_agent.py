"""Tests for the briefing session state machine."""

import threading

import pytest

from exceptions.exceptions import GenerationError, InvalidRequestError, NotFoundError
from runtime.agents.briefing_agent import OPENING_MESSAGE
from runtime.models.job_models import Job, JobStatus
from runtime.models.session_models import MessageRole, SessionStatus

from conftest import (
    FailingBackend,
    FakeGenerationBackend,
    ScriptedExtractionBackend,
    complete_brief_data,
    partial_brief_data,
)


# =============================================================================
# First message + continuation
# =============================================================================


class TestSendMessage:
    """Message exchange through send_message."""

    def test_first_message_creates_session_with_three_messages(self, agent, generation_backend):
        result = agent.send_message("client-1", "I need a promo video")

        messages = result.session.messages
        assert len(messages) == 3
        assert messages[0].role == MessageRole.ASSISTANT
        assert messages[0].content == OPENING_MESSAGE
        assert messages[1].role == MessageRole.USER
        assert messages[1].content == "I need a promo video"
        assert messages[2].role == MessageRole.ASSISTANT
        assert result.assistant_message == generation_backend.reply
        assert result.session.status == SessionStatus.ACTIVE

    def test_incomplete_turn_reports_missing_fields(self, agent):
        result = agent.send_message("client-1", "I need a promo video")

        assert result.extraction.is_complete is False
        assert result.extraction.missing_fields == [
            "attributes.duration",
            "attributes.publish_platform",
        ]
        assert result.session.extracted_brief.title == "Promo video edit"

    def test_following_messages_reuse_the_session(self, agent):
        first = agent.send_message("client-1", "I need a promo video")
        second = agent.send_message("client-1", "About 60 seconds")

        assert second.session.id == first.session.id
        assert len(second.session.messages) == 5

    def test_explicit_session_id_must_belong_to_client(self, agent):
        first = agent.send_message("client-1", "I need a promo video")

        with pytest.raises(NotFoundError):
            agent.send_message("client-2", "hijack", session_id=first.session.id)
        with pytest.raises(NotFoundError):
            agent.send_message("client-1", "hello", session_id="does-not-exist")

    @pytest.mark.parametrize("message", ["", "   ", None, 42, ["text"]])
    def test_invalid_messages_are_rejected(self, agent, session_store, message):
        with pytest.raises(InvalidRequestError):
            agent.send_message("client-1", message)
        assert session_store.get_active("client-1") is None

    def test_overlong_message_is_rejected(self, make_agent, extraction_backend, generation_backend):
        agent = make_agent(extraction_backend, generation_backend, max_message_chars=10)
        with pytest.raises(InvalidRequestError, match="too long"):
            agent.send_message("client-1", "x" * 11)

    def test_concurrent_first_messages_share_one_session(self, agent, session_store):
        results = []
        errors = []
        barrier = threading.Barrier(2)

        def send(text):
            barrier.wait()
            try:
                results.append(agent.send_message("client-1", text))
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=send, args=(t,)) for t in ("first", "second")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        sessions = session_store.list_for_client("client-1")
        assert len(sessions) == 1
        assert all(r.session.id == sessions[0].id for r in results)
        assert results or errors


# =============================================================================
# Completion
# =============================================================================


class TestCompletion:
    """Completed briefs get the fixed summary and close the session."""

    def test_complete_brief_uses_summary_without_generation(self, make_agent, generation_backend):
        agent = make_agent(ScriptedExtractionBackend(default=complete_brief_data()), generation_backend)

        result = agent.send_message("client-1", "60s promo for Instagram, due Jan 10")

        assert generation_backend.calls == []
        assert result.assistant_message.startswith("Here's what I've captured:\n\n**Promo video edit**")
        assert result.assistant_message.endswith("Does this look right? You can submit or start over.")
        assert result.extraction.is_complete is True
        assert result.session.status == SessionStatus.COMPLETED
        assert result.session.completed_at is not None

    def test_completed_session_is_not_reused(self, make_agent, generation_backend, session_store):
        backend = ScriptedExtractionBackend(
            responses=[complete_brief_data()], default=partial_brief_data()
        )
        agent = make_agent(backend, generation_backend)

        done = agent.send_message("client-1", "everything at once")
        follow_up = agent.send_message("client-1", "one more thing")

        assert follow_up.session.id != done.session.id
        assert session_store.get_session(done.session.id).status == SessionStatus.COMPLETED
        assert agent.get_active("client-1").id == follow_up.session.id

    def test_completed_session_rejects_explicit_id(self, make_agent, generation_backend):
        agent = make_agent(ScriptedExtractionBackend(default=complete_brief_data()), generation_backend)
        done = agent.send_message("client-1", "everything at once")

        with pytest.raises(NotFoundError):
            agent.send_message("client-1", "change the title", session_id=done.session.id)


# =============================================================================
# Degradation
# =============================================================================


class TestDegradation:
    """Collaborator failures."""

    def test_extraction_failure_keeps_previous_brief(self, make_agent, generation_backend):
        backend = ScriptedExtractionBackend(
            responses=[partial_brief_data(), RuntimeError("model down")]
        )
        agent = make_agent(backend, generation_backend)

        agent.send_message("client-1", "I need a promo video")
        result = agent.send_message("client-1", "about a minute")

        assert result.extraction.brief is None
        assert result.extraction.missing_fields == ["title", "description", "category", "priority"]
        assert result.session.extracted_brief.title == "Promo video edit"
        assert result.session.status == SessionStatus.ACTIVE

    def test_context_failure_is_ignored(self, make_agent, extraction_backend, generation_backend):
        agent = make_agent(extraction_backend, generation_backend, context_sources=[FailingBackend()])

        result = agent.send_message("client-1", "I need a promo video")

        assert result.assistant_message == generation_backend.reply
        assert result.session.context_summary is None

    def test_generation_failure_persists_user_message(self, make_agent, extraction_backend, session_store):
        agent = make_agent(extraction_backend, FailingBackend())

        with pytest.raises(GenerationError):
            agent.send_message("client-1", "I need a promo video")

        stored = session_store.get_active("client-1")
        assert [m.content for m in stored.messages] == [OPENING_MESSAGE, "I need a promo video"]
        assert stored.extracted_brief.title == "Promo video edit"

    def test_retry_after_generation_failure_does_not_duplicate(
        self, make_agent, extraction_backend, generation_backend, session_store
    ):
        failing = make_agent(extraction_backend, FailingBackend())
        with pytest.raises(GenerationError):
            failing.send_message("client-1", "I need a promo video")

        working = make_agent(extraction_backend, generation_backend)
        result = working.send_message("client-1", "I need a promo video")

        contents = [m.content for m in result.session.messages]
        assert contents == [OPENING_MESSAGE, "I need a promo video", generation_backend.reply]


# =============================================================================
# Context
# =============================================================================


class TestContext:
    def test_past_jobs_feed_context_summary(self, agent, job_store, generation_backend):
        job_store.save_job(
            Job(
                client_id="client-1",
                title="Promo video for winter sale",
                category="video",
                status=JobStatus.COMPLETED,
            )
        )

        result = agent.send_message("client-1", "Another promo video please")

        assert result.session.context_summary.startswith("Past job: Promo video for winter sale")
        system_prompt = generation_backend.calls[0][0]["content"]
        assert "Past job: Promo video for winter sale" in system_prompt


# =============================================================================
# Abandon / get_active / submit
# =============================================================================


class TestAbandonAndSubmit:
    def test_abandon_without_session_is_noop(self, agent, session_store):
        assert agent.abandon("client-1") is False
        assert session_store.all() == []

    def test_abandon_then_new_session(self, agent, session_store):
        first = agent.send_message("client-1", "I need a promo video")

        assert agent.abandon("client-1") is True
        assert agent.get_active("client-1") is None
        assert session_store.get_session(first.session.id).status == SessionStatus.ABANDONED

        second = agent.send_message("client-1", "Actually, a logo")
        assert second.session.id != first.session.id

    def test_get_active_without_session(self, agent):
        assert agent.get_active("client-1") is None

    def test_submit_creates_one_pending_job(self, make_agent, generation_backend, job_store):
        agent = make_agent(ScriptedExtractionBackend(default=complete_brief_data()), generation_backend)
        done = agent.send_message("client-1", "everything at once")

        job = agent.submit("client-1", done.session.id)
        again = agent.submit("client-1", done.session.id)

        assert job.id == again.id
        assert job.status == JobStatus.PENDING
        assert job.title == "Promo video edit"
        assert job.category == "video"
        assert job.briefing_id == done.session.id
        assert len(job_store.list_jobs(client_id="client-1")) == 1

    def test_submit_requires_completed_owned_session(self, agent):
        active = agent.send_message("client-1", "I need a promo video")

        with pytest.raises(NotFoundError):
            agent.submit("client-1", active.session.id)
        with pytest.raises(NotFoundError):
            agent.submit("client-2", active.session.id)

    def test_lifecycle_events_are_logged(self, make_agent, generation_backend, log_store):
        events = []
        log_store.log_event = lambda event_type, payload: events.append(event_type)
        agent = make_agent(ScriptedExtractionBackend(default=complete_brief_data()), generation_backend)

        done = agent.send_message("client-1", "everything at once")
        agent.submit("client-1", done.session.id)

        assert events == ["briefing_created", "briefing_completed", "briefing_submitted"]
