"""Shared fixtures for Briefdesk tests."""

import os

# Keep every store in memory unless a test passes its own data dir.
os.environ["BRIEFDESK_RUNTIME_DATA_DIR"] = ""
os.environ.pop("BRIEFDESK_LOG_DIR", None)

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from core.brief.extractor import BriefExtractor
from core.brief.responder import ResponseGenerator
from core.brief.schema import BriefSchema
from core.context.retriever import ContextRetriever
from core.context.sources import PastBriefSource, PastJobSource
from runtime.agents.briefing_agent import BriefingAgent
from runtime.store.job_store import JobStore, WorkerStore
from runtime.store.log_store import LogStore
from runtime.store.session_store import SessionStore
from runtime.tasks.maintenance import TaskRunner


NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Fake backends
# =============================================================================


class ScriptedExtractionBackend:
    """Returns a fixed (or per-call) extraction and records transcripts."""

    def __init__(self, responses: Optional[List[Any]] = None, default: Any = None):
        self.responses = list(responses or [])
        self.default = default if default is not None else {}
        self.calls: List[List[Dict[str, str]]] = []

    def extract_brief(self, transcript, schema, now):
        self.calls.append(list(transcript))
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        return response


class FakeGenerationBackend:
    """Echoes a canned reply and records the chat it was given."""

    def __init__(self, reply: str = "What format do you need it in?"):
        self.reply = reply
        self.calls: List[List[Dict[str, str]]] = []

    def generate(self, messages):
        self.calls.append(list(messages))
        return self.reply


class FailingBackend:
    """Raises from every capability it might be used for."""

    def __init__(self, message: str = "backend unavailable"):
        self.message = message
        self.calls = 0

    def extract_brief(self, transcript, schema, now):
        self.calls += 1
        raise RuntimeError(self.message)

    def generate(self, messages):
        self.calls += 1
        raise RuntimeError(self.message)

    def items_for_client(self, client_id):
        self.calls += 1
        raise RuntimeError(self.message)


# =============================================================================
# Data
# =============================================================================


def partial_brief_data() -> Dict[str, Any]:
    return {
        "title": "Promo video edit",
        "description": "Edit a promo video for the spring launch",
        "category": "video",
        "priority": "standard",
    }


def complete_brief_data() -> Dict[str, Any]:
    data = partial_brief_data()
    data.update(
        {
            "deadline": "2030-01-10T17:00:00Z",
            "estimated_hours": 3,
            "key_requirements": ["Add captions", "Use brand colors"],
            "deliverables": ["1080p MP4"],
            "attributes": {"duration": "60 seconds", "publish_platform": "Instagram"},
            "confidence": 0.9,
        }
    )
    return data


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fixed_clock():
    return lambda: NOW


@pytest.fixture
def schema():
    return BriefSchema()


@pytest.fixture
def session_store():
    return SessionStore()


@pytest.fixture
def job_store():
    return JobStore()


@pytest.fixture
def worker_store():
    return WorkerStore()


@pytest.fixture
def log_store():
    return LogStore()


@pytest.fixture
def extraction_backend():
    return ScriptedExtractionBackend(default=partial_brief_data())


@pytest.fixture
def generation_backend():
    return FakeGenerationBackend()


@pytest.fixture
def make_agent(session_store, job_store, log_store, schema, fixed_clock):
    """Factory building a BriefingAgent around the given fake backends."""

    def factory(extraction_backend, generation_backend, context_sources=None, **kwargs):
        if context_sources is None:
            context_sources = [PastBriefSource(session_store), PastJobSource(job_store)]
        return BriefingAgent(
            session_store=session_store,
            extractor=BriefExtractor(backend=extraction_backend, schema=schema, clock=fixed_clock),
            responder=ResponseGenerator(backend=generation_backend, schema=schema),
            context_retriever=ContextRetriever(sources=context_sources, max_items=3),
            job_store=job_store,
            log_store=log_store,
            **kwargs,
        )

    return factory


@pytest.fixture
def agent(make_agent, extraction_backend, generation_backend):
    return make_agent(extraction_backend, generation_backend)


@pytest.fixture
def task_runner(session_store, job_store, worker_store, log_store, fixed_clock):
    return TaskRunner(
        session_store=session_store,
        job_store=job_store,
        worker_store=worker_store,
        log_store=log_store,
        clock=fixed_clock,
    )
