"""BriefingAgent implementation.

Owns the briefing session state machine:

    active --(brief complete)-------------------> completed
    active --(client reset / maintenance sweep)--> abandoned

Terminal sessions never come back; the client's next message starts a
new session instead.

One turn (append_turn) runs:
- append the user's message
- retrieve client context and extract the brief, in parallel
- overwrite extracted_brief with the fresh extraction
- reply: fixed summary when complete, generated follow-up otherwise
- append the assistant's reply and persist the whole session

If reply generation fails, the session is persisted with the user's
message before the error propagates, so nothing the client said is lost.
Resending the same message then reuses it instead of appending it twice.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, List, Optional
from uuid import NAMESPACE_URL, uuid5

from core.brief.extractor import BriefExtractor
from core.brief.models import ExtractionResult
from core.brief.responder import ResponseGenerator
from core.context.retriever import ContextItem, ContextRetriever, build_context_summary
from exceptions.exceptions import InternalError, InvalidRequestError, NotFoundError
from ..models.job_models import Job, JobStatus
from ..models.session_models import (
    BriefingSession,
    MessageRole,
    SessionStatus,
    utcnow,
)
from ..store.log_store import LogStore
from ..store.session_store import SessionStore


logger = logging.getLogger(__name__)

OPENING_MESSAGE = "Hi! I'm here to help capture your task. What do you need done today?"

_JOB_NAMESPACE = uuid5(NAMESPACE_URL, "briefdesk/jobs")


@dataclass
class TurnResult:
    """What one message exchange produced."""

    session: BriefingSession
    assistant_message: str
    extraction: ExtractionResult


class BriefingAgent:
    """Conversation + state-machine logic for briefing sessions.

    Parameters
    ----------
    session_store:
        Store used to load and persist BriefingSession objects.
    extractor:
        Turns the full message history into an ExtractionResult.
    responder:
        Produces the assistant reply (summary or follow-up question).
    context_retriever:
        Optional; without it every turn runs with empty context.
    job_store:
        Needed only by submit(), which turns a completed brief into a job.
    log_store:
        Optional sink for lifecycle events.
    """

    def __init__(
        self,
        session_store: SessionStore,
        extractor: BriefExtractor,
        responder: ResponseGenerator,
        context_retriever: Optional[ContextRetriever] = None,
        job_store=None,
        log_store: Optional[LogStore] = None,
        max_message_chars: int = 4000,
        context_preview_chars: int = 100,
    ):
        self.session_store = session_store
        self.extractor = extractor
        self.responder = responder
        self.context_retriever = context_retriever
        self.job_store = job_store
        self.log_store = log_store
        self.max_message_chars = max_message_chars
        self.context_preview_chars = context_preview_chars

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def send_message(
        self,
        client_id: str,
        message: Any,
        session_id: Optional[str] = None,
    ) -> TurnResult:
        """Validate the message, then load/create the session and run a turn."""
        text = self._validate_message(message)
        session = self.get_or_create(client_id, session_id)
        return self.append_turn(session, text)

    def get_or_create(self, client_id: str, session_id: Optional[str] = None) -> BriefingSession:
        """Resolve the session a message belongs to.

        An explicit session_id must name an active session owned by the
        client. Without one, the client's active session is reused or a
        new one is created, seeded with the opening assistant message.
        """
        if session_id:
            session = self.session_store.get_session(session_id)
            if (
                session is None
                or session.client_id != client_id
                or session.status != SessionStatus.ACTIVE
            ):
                raise NotFoundError("Briefing session not found")
            return session

        def new_session() -> BriefingSession:
            session = BriefingSession(client_id=client_id)
            session.append(MessageRole.ASSISTANT, OPENING_MESSAGE)
            return session

        session, created = self.session_store.find_or_create_active(client_id, new_session)
        if created:
            self._log("briefing_created", session)
        return session

    def append_turn(self, session: BriefingSession, message: str) -> TurnResult:
        """Run one message exchange on an active session and persist it."""
        last = session.messages[-1] if session.messages else None
        if last is not None and last.role == MessageRole.USER and last.content == message:
            # Retry after a failed reply: the message is already stored.
            logger.info("[BRIEFING] Reusing unanswered message on session_id=%s", session.id)
        else:
            session.append(MessageRole.USER, message)

        history = list(session.messages)
        with ThreadPoolExecutor(max_workers=2) as pool:
            context_future = pool.submit(self._retrieve_context, session.client_id, message)
            extraction_future = pool.submit(self._extract, history)
            context_items = context_future.result()
            extraction = extraction_future.result()

        if extraction.brief is not None:
            session.extracted_brief = extraction.brief
        if context_items:
            session.context_summary = build_context_summary(
                context_items, self.context_preview_chars
            )

        if extraction.is_complete:
            reply = self.responder.summarize(extraction.brief)
        else:
            try:
                reply = self.responder.generate(
                    client_id=session.client_id,
                    messages=session.messages,
                    context_items=context_items,
                    current_brief=extraction.brief,
                    missing_fields=extraction.missing_fields,
                )
            except InternalError:
                self.session_store.save_session(session)
                raise

        session.append(MessageRole.ASSISTANT, reply)
        if extraction.is_complete:
            session.status = SessionStatus.COMPLETED
            session.completed_at = utcnow()

        saved = self.session_store.save_session(session)
        if saved.status == SessionStatus.COMPLETED:
            self._log("briefing_completed", saved)

        return TurnResult(session=saved, assistant_message=reply, extraction=extraction)

    def get_active(self, client_id: str) -> Optional[BriefingSession]:
        return self.session_store.get_active(client_id)

    def abandon(self, client_id: str) -> bool:
        """Abandon the client's active session. Returns False when there was none."""
        session = self.session_store.mark_abandoned(client_id)
        if session is None:
            return False
        self._log("briefing_abandoned", session, reason="client_reset")
        return True

    def submit(self, client_id: str, session_id: str) -> Job:
        """Create (once) the pending job described by a completed briefing."""
        if self.job_store is None:
            raise InternalError("Job store is not configured")

        session = self.session_store.get_session(session_id)
        if (
            session is None
            or session.client_id != client_id
            or session.status != SessionStatus.COMPLETED
            or session.extracted_brief is None
        ):
            raise NotFoundError("Completed briefing session not found")

        job_id = str(uuid5(_JOB_NAMESPACE, session.id))
        existing = self.job_store.get_job(job_id)
        if existing is not None:
            return existing

        brief = session.extracted_brief
        job = self.job_store.save_job(
            Job(
                id=job_id,
                client_id=client_id,
                title=brief.title,
                description=brief.description,
                category=brief.category,
                priority=brief.priority,
                status=JobStatus.PENDING,
                estimated_hours=brief.estimated_hours,
                context_from_past_work=session.context_summary,
                briefing_id=session.id,
            )
        )

        session.job_id = job.id
        self.session_store.save_session(session)
        self._log("briefing_submitted", session, job_id=job.id)
        return job

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _validate_message(self, message: Any) -> str:
        if not isinstance(message, str) or not message.strip():
            raise InvalidRequestError("Message is required and must be non-empty text")
        if len(message) > self.max_message_chars:
            raise InvalidRequestError(
                f"Message is too long ({len(message)} characters, "
                f"max {self.max_message_chars})"
            )
        return message.strip()

    def _retrieve_context(self, client_id: str, message: str) -> List[ContextItem]:
        if self.context_retriever is None:
            return []
        try:
            return self.context_retriever.retrieve(client_id, message)
        except Exception:
            logger.warning(
                "[CONTEXT] Retrieval failed for client_id=%s; using empty context",
                client_id,
                exc_info=True,
            )
            return []

    def _extract(self, history) -> ExtractionResult:
        try:
            return self.extractor.extract(history)
        except Exception:
            logger.exception("[EXTRACT] Extractor raised; treating brief as empty")
            return self.extractor.empty_result()

    def _log(self, event_type: str, session: BriefingSession, **extra) -> None:
        if self.log_store is None:
            return
        payload = {
            "session_id": session.id,
            "client_id": session.client_id,
            "status": session.status.value,
        }
        payload.update(extra)
        self.log_store.log_event(event_type=event_type, payload=payload)
