"""
Construction of the shared runtime objects (stores, agent, task runner).

Both the FastAPI server and the CLI build their singletons through
build_services(), so they always agree on data locations and wiring.
"""

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional, Sequence, Union

from configs.settings import settings
from core.brief.extractor import BriefExtractor, ExtractionBackend, OpenAIExtractionBackend
from core.brief.responder import GenerationBackend, OpenAIChatBackend, ResponseGenerator
from core.brief.schema import BriefSchema
from core.context.retriever import ContextRetriever, ContextSource
from core.context.sources import PastBriefSource, PastJobSource
from .agents.briefing_agent import BriefingAgent
from .store.job_store import JobStore, WorkerStore
from .store.log_store import LogStore
from .store.session_store import SessionStore
from .tasks.maintenance import TaskRunner


PathLike = Union[str, Path, None]


@dataclass
class Services:
    session_store: SessionStore
    job_store: JobStore
    worker_store: WorkerStore
    log_store: LogStore
    agent: BriefingAgent
    task_runner: TaskRunner


def build_services(
    data_dir: PathLike = settings.runtime_data_dir,
    log_dir: PathLike = settings.log_dir,
    extraction_backend: Optional[ExtractionBackend] = None,
    generation_backend: Optional[GenerationBackend] = None,
    context_sources: Optional[Sequence[ContextSource]] = None,
    schema: Optional[BriefSchema] = None,
) -> Services:
    """Wire stores, the briefing agent and the task runner together.

    Backends default to the OpenAI implementations; pass fakes in tests.
    """
    data_dir = str(data_dir) if data_dir else None
    log_dir = str(log_dir) if log_dir else None
    schema = schema or BriefSchema()

    # Stores: in-memory, optionally file-backed under data_dir.
    session_store = SessionStore(data_dir=data_dir)
    job_store = JobStore(data_dir=data_dir)
    worker_store = WorkerStore(data_dir=data_dir)
    log_store = LogStore(log_dir=log_dir)

    if context_sources is None:
        context_sources = [PastBriefSource(session_store), PastJobSource(job_store)]

    agent = BriefingAgent(
        session_store=session_store,
        extractor=BriefExtractor(
            backend=extraction_backend or OpenAIExtractionBackend(),
            schema=schema,
        ),
        responder=ResponseGenerator(
            backend=generation_backend or OpenAIChatBackend(),
            schema=schema,
        ),
        context_retriever=ContextRetriever(
            sources=context_sources,
            max_items=settings.context_max_items,
        ),
        job_store=job_store,
        log_store=log_store,
        max_message_chars=settings.max_message_chars,
    )

    task_runner = TaskRunner(
        session_store=session_store,
        job_store=job_store,
        worker_store=worker_store,
        log_store=log_store,
        briefing_inactivity=timedelta(hours=settings.briefing_inactivity_hours),
        stale_job_age=timedelta(days=settings.stale_job_days),
    )

    return Services(
        session_store=session_store,
        job_store=job_store,
        worker_store=worker_store,
        log_store=log_store,
        agent=agent,
        task_runner=task_runner,
    )
