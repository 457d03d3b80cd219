"""
core/context/retriever.py

Client-context retrieval for briefing conversations.

Given a client id and the latest message, the retriever gathers snippets
from every configured ContextSource (past briefs, past jobs, ...), ranks
them by lexical overlap with the message (most recent first on ties) and
keeps the top `max_items`.

Retrieval never fails the conversation: a broken source is logged and
skipped, and "no context" is simply an empty list.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Protocol, Sequence, Set


logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"[a-z0-9]+")

_STOPWORDS = frozenset(
    {
        "the", "and", "for", "with", "that", "this", "you", "your", "are",
        "was", "have", "has", "but", "not", "can", "our", "from", "need",
        "want", "would", "like", "please", "some", "any", "all", "into",
    }
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class ContextItem:
    """One snippet of prior client history."""

    content: str
    source: str
    score: float = 0.0
    created_at: Optional[datetime] = None


class ContextSource(Protocol):
    """Anything that can list raw context items for a client."""

    name: str

    def items_for_client(self, client_id: str) -> Iterable[ContextItem]:
        ...


def _tokens(text: str) -> Set[str]:
    return {
        word
        for word in _WORD_RE.findall((text or "").lower())
        if len(word) > 2 and word not in _STOPWORDS
    }


def relevance(query_tokens: Set[str], content: str) -> float:
    """Overlap between query and item, damped by item length."""
    item_tokens = _tokens(content)
    if not query_tokens or not item_tokens:
        return 0.0
    overlap = len(query_tokens & item_tokens)
    return overlap / math.sqrt(len(item_tokens))


class ContextRetriever:
    """
    Ranked, size-bounded context lookup over a set of sources.

    Parameters
    ----------
    sources:
        ContextSource implementations to query, in no particular order.
    max_items:
        Upper bound on the number of items returned.
    """

    def __init__(self, sources: Sequence[ContextSource] = (), max_items: int = 3) -> None:
        self.sources = list(sources)
        self.max_items = max_items

    def retrieve(self, client_id: str, query_message: str) -> List[ContextItem]:
        if not self.sources or self.max_items <= 0:
            return []

        query_tokens = _tokens(query_message)
        candidates: List[ContextItem] = []

        for source in self.sources:
            source_name = getattr(source, "name", type(source).__name__)
            try:
                items = list(source.items_for_client(client_id))
            except Exception:
                logger.warning(
                    "[CONTEXT] Source %s failed for client_id=%s; continuing without it",
                    source_name,
                    client_id,
                    exc_info=True,
                )
                continue

            for item in items:
                if not item.content:
                    continue
                item.score = relevance(query_tokens, item.content)
                candidates.append(item)

        candidates.sort(
            key=lambda item: (item.score, item.created_at or _EPOCH),
            reverse=True,
        )
        return candidates[: self.max_items]


def build_context_summary(items: Sequence[ContextItem], preview_chars: int = 100) -> Optional[str]:
    """Join truncated item previews into one newline-separated summary."""
    if not items:
        return None
    return "\n".join(item.content[:preview_chars] for item in items)
