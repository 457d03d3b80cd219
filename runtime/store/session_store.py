"""Briefing session storage for Briefdesk.

Builds on DocumentStore (in-memory + optional JSON files under
`data_dir/briefings/<session_id>.json`) and adds the two rules the store
itself enforces:

- uniqueness: at most one `active` session per client. Creating goes
  through find_or_create_active(), which is atomic, and save_session()
  refuses to store a second active session for the same client.
- no resurrection: a session stored as completed/abandoned is never
  written back as active.
"""

from datetime import datetime
from typing import Callable, List, Optional, Tuple

from exceptions.exceptions import DuplicateActiveSessionError, SessionClosedError
from ..models.session_models import BriefingSession, SessionStatus, utcnow
from .document_store import DocumentStore


class SessionStore(DocumentStore[BriefingSession]):
    """In-memory + optional file-backed briefing session store."""

    collection = "briefings"
    model = BriefingSession

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_session(self, session_id: str) -> Optional[BriefingSession]:
        """Retrieve an existing session by ID, or None."""
        return self.get(session_id)

    def get_active(self, client_id: str) -> Optional[BriefingSession]:
        """Return the client's active session, or None."""
        with self._lock:
            doc = self._find_active_locked(client_id)
            return doc.model_copy(deep=True) if doc is not None else None

    def list_for_client(
        self,
        client_id: str,
        status: Optional[SessionStatus] = None,
    ) -> List[BriefingSession]:
        sessions = self.find(
            lambda s: s.client_id == client_id and (status is None or s.status == status)
        )
        return sorted(sessions, key=lambda s: s.created_at)

    def find_stale_active(self, cutoff: datetime) -> List[BriefingSession]:
        """Active sessions whose last activity is strictly before `cutoff`."""
        return self.find(
            lambda s: s.status == SessionStatus.ACTIVE and s.updated_at < cutoff
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def find_or_create_active(
        self,
        client_id: str,
        factory: Callable[[], BriefingSession],
    ) -> Tuple[BriefingSession, bool]:
        """Return the client's active session, creating it if needed.

        The lookup and the insert happen under one lock, so two concurrent
        first messages from a client end up sharing one session.

        Returns (session, created).
        """
        with self._lock:
            existing = self._find_active_locked(client_id)
            if existing is not None:
                return existing.model_copy(deep=True), False

            session = factory()
            session.client_id = client_id
            session.status = SessionStatus.ACTIVE
            return self._put(session), True

    def save_session(self, session: BriefingSession, touch: bool = True) -> BriefingSession:
        """Replace the stored copy of `session` with this one.

        Raises
        ------
        SessionClosedError
            If the stored copy is terminal and this one is active.
        DuplicateActiveSessionError
            If this session is active and the client already has a
            different active session.
        StoreError
            If writing to disk fails.
        """
        with self._lock:
            current = self._docs.get(session.id)
            if (
                current is not None
                and current.status.is_terminal
                and session.status == SessionStatus.ACTIVE
            ):
                raise SessionClosedError(session.id, current.status.value)

            if session.status == SessionStatus.ACTIVE:
                other = self._find_active_locked(session.client_id)
                if other is not None and other.id != session.id:
                    raise DuplicateActiveSessionError(session.client_id, other.id)

            if touch:
                session.updated_at = utcnow()
            return self._put(session)

    def mark_abandoned(self, client_id: str) -> Optional[BriefingSession]:
        """Move the client's active session (if any) to abandoned."""
        with self._lock:
            current = self._find_active_locked(client_id)
            if current is None:
                return None
            session = current.model_copy(deep=True)
            session.status = SessionStatus.ABANDONED
            session.updated_at = utcnow()
            return self._put(session)

    def abandon_if_stale(self, session_id: str, cutoff: datetime) -> bool:
        """Abandon one session if it is still active and idle since `cutoff`.

        The condition is re-checked under the lock, so a session that
        received a message after the sweep listed it is left alone.
        """
        with self._lock:
            current = self._docs.get(session_id)
            if current is None:
                return False
            if current.status != SessionStatus.ACTIVE or current.updated_at >= cutoff:
                return False
            session = current.model_copy(deep=True)
            session.status = SessionStatus.ABANDONED
            session.updated_at = utcnow()
            self._put(session)
            return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _find_active_locked(self, client_id: str) -> Optional[BriefingSession]:
        for doc in self._docs.values():
            if doc.client_id == client_id and doc.status == SessionStatus.ACTIVE:
                return doc
        return None
