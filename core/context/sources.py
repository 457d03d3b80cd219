"""
Context sources backed by the runtime stores.

Stores are used duck-typed (only `list_for_client` / `list_jobs` are
called), so this module does not depend on the runtime package.
Store failures surface as ContextRetrievalError; the retriever skips the
source and carries on.
"""

from __future__ import annotations

from typing import Any, Iterable, List

from exceptions.exceptions import ContextRetrievalError
from .retriever import ContextItem


def _status(value: Any) -> str:
    return str(getattr(value, "value", value))


class PastBriefSource:
    """Briefs the client completed in earlier sessions."""

    name = "past_briefs"

    def __init__(self, session_store: Any) -> None:
        self.session_store = session_store

    def items_for_client(self, client_id: str) -> Iterable[ContextItem]:
        try:
            sessions = self.session_store.list_for_client(client_id)
        except Exception as exc:
            raise ContextRetrievalError(f"Could not read past briefs: {exc}") from exc

        items: List[ContextItem] = []
        for session in sessions:
            brief = session.extracted_brief
            if _status(session.status) != "completed" or brief is None:
                continue
            text = f"Past brief: {brief.title or 'Untitled'}"
            if brief.category:
                text += f" ({brief.category})"
            if brief.description:
                text += f" - {brief.description}"
            if brief.key_requirements:
                text += f" Requirements: {', '.join(brief.key_requirements)}."
            items.append(
                ContextItem(
                    content=text,
                    source=self.name,
                    created_at=session.completed_at or session.updated_at,
                )
            )
        return items


class PastJobSource:
    """Jobs previously created for the client, with their outcome."""

    name = "past_jobs"

    def __init__(self, job_store: Any) -> None:
        self.job_store = job_store

    def items_for_client(self, client_id: str) -> Iterable[ContextItem]:
        try:
            jobs = self.job_store.list_jobs(client_id=client_id)
        except Exception as exc:
            raise ContextRetrievalError(f"Could not read past jobs: {exc}") from exc

        items: List[ContextItem] = []
        for job in jobs:
            text = f"Past job: {job.title} [{job.category or 'other'}, {_status(job.status)}]"
            if job.description:
                text += f" - {job.description}"
            if job.rating:
                text += f" Rated {job.rating:g}/5."
            items.append(
                ContextItem(
                    content=text,
                    source=self.name,
                    created_at=job.completed_at or job.created_at,
                )
            )
        return items
