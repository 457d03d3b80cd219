"""
Custom exceptions for Briefdesk.

These exceptions are intentionally simple and descriptive.
They are used across:

  - core/brief/ and core/context/
  - runtime/agents/, runtime/store/, runtime/tasks/
  - runtime/api/

Placing them at the project root (exceptions/) avoids circular imports
and keeps exception types consistent across modules. Every class carries
the HTTP status the API layer answers with.
"""


class BriefdeskError(Exception):
    """Base class for all Briefdesk errors."""

    status_code = 500

    def __init__(self, message: str = ""):
        self.message = message or self.__class__.__name__
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class UnauthorizedError(BriefdeskError):
    """Raised when no (valid) identity accompanies the request."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ForbiddenError(BriefdeskError):
    """Raised when the identity lacks the role the operation requires."""

    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------


class InvalidRequestError(BriefdeskError):
    """
    Raised when the request itself is malformed, e.g. an empty message.

    The message is surfaced to the caller as-is, so it should say what
    to fix.
    """

    status_code = 400


class UnknownTaskError(InvalidRequestError):
    """Raised when a maintenance task id is not in the registry."""

    def __init__(self, task_id, known_tasks=None):
        self.task_id = task_id
        self.known_tasks = list(known_tasks or [])
        msg = f"Unknown task: {task_id}"
        if self.known_tasks:
            msg += " (known tasks: " + ", ".join(self.known_tasks) + ")"
        super().__init__(msg)


class NotFoundError(BriefdeskError):
    """Raised when a referenced resource does not exist for the caller."""

    status_code = 404


# ---------------------------------------------------------------------------
# Internal / collaborator failures
# ---------------------------------------------------------------------------


class InternalError(BriefdeskError):
    """Unrecoverable failure; surfaced to the caller as a 500."""

    status_code = 500


class GenerationError(InternalError):
    """
    Raised when the text-generation capability fails in continuation mode.

    There is no safe substitute text, so the turn fails, but the user
    message has already been persisted when this propagates.
    """

    def __init__(self, details=None):
        self.details = details
        msg = "Assistant reply generation failed"
        if details:
            msg += f": {details}"
        super().__init__(msg)


class TaskExecutionError(InternalError):
    """Raised when a single maintenance task fails on its own."""

    def __init__(self, task_id, cause):
        self.task_id = task_id
        self.cause = cause
        super().__init__(f"Task '{task_id}' failed: {cause}")


class StoreError(InternalError):
    """Raised when a store read or write fails."""


class DuplicateActiveSessionError(StoreError):
    """
    Raised when a second active briefing session would be stored for a
    client that already has one.
    """

    def __init__(self, client_id, existing_session_id):
        self.client_id = client_id
        self.existing_session_id = existing_session_id
        super().__init__(
            f"Client {client_id} already has active briefing {existing_session_id}"
        )


class SessionClosedError(StoreError):
    """Raised when a write would move a terminal session back to active."""

    def __init__(self, session_id, status):
        self.session_id = session_id
        self.status = status
        super().__init__(f"Briefing {session_id} is already {status}")


class ExtractionError(BriefdeskError):
    """
    Raised by extraction backends. The extractor always recovers from it,
    so it never reaches the API layer.
    """


class ContextRetrievalError(BriefdeskError):
    """Raised by context sources; the retriever degrades to empty context."""
