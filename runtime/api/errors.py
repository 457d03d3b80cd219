"""Translation of Briefdesk errors into HTTP errors."""

import logging

from fastapi import HTTPException

from exceptions.exceptions import BriefdeskError


logger = logging.getLogger(__name__)


def to_http_error(exc: BriefdeskError, operation: str, caller: str) -> HTTPException:
    """Log `exc` with request context and return the HTTPException to raise.

    Client errors (4xx) keep their message so the request can be fixed;
    server errors only say "Internal server error".
    """
    status = exc.status_code
    if status < 500:
        logger.warning(
            "[API] HTTP %s for %s caller=%s reason=%r",
            status,
            operation,
            caller,
            exc.message,
        )
        return HTTPException(status_code=status, detail=exc.message)

    logger.error(
        "[API] HTTP %s for %s caller=%s error=%r",
        status,
        operation,
        caller,
        exc.message,
        exc_info=exc,
    )
    return HTTPException(status_code=status, detail="Internal server error")
