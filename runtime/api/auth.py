"""Caller identity for the Briefdesk API.

Authentication itself happens upstream; this module only asks an
IdentityProvider who the caller is and checks the role an endpoint needs.

The default HeaderIdentityProvider trusts the auth gateway's headers:

    X-User-Id:   <user id>
    X-User-Role: client | worker | admin

Maintenance endpoints additionally accept the scheduler's shared secret:

    X-Cron-Secret: <BRIEFDESK_CRON_SECRET>
"""

import hmac
from dataclasses import dataclass
from typing import Optional, Protocol

from fastapi import Request

from exceptions.exceptions import BriefdeskError, ForbiddenError, UnauthorizedError
from .errors import to_http_error


CLIENT_ROLE = "client"
ADMIN_ROLE = "admin"


@dataclass
class Identity:
    id: str
    role: str


class IdentityProvider(Protocol):
    def identify(self, request: Request) -> Optional[Identity]:
        """Return the caller's identity, or None when unauthenticated."""
        ...


class HeaderIdentityProvider:
    """Reads the identity forwarded by the upstream auth gateway."""

    def __init__(self, id_header: str = "X-User-Id", role_header: str = "X-User-Role") -> None:
        self.id_header = id_header
        self.role_header = role_header

    def identify(self, request: Request) -> Optional[Identity]:
        user_id = (request.headers.get(self.id_header) or "").strip()
        role = (request.headers.get(self.role_header) or "").strip().lower()
        if not user_id or not role:
            return None
        return Identity(id=user_id, role=role)


# Module-level configuration, to be initialized by the server.
_PROVIDER: IdentityProvider = HeaderIdentityProvider()
_CRON_SECRET: Optional[str] = None


def init_auth(provider: Optional[IdentityProvider] = None, cron_secret: Optional[str] = None) -> None:
    """Initialize the identity provider and scheduler secret used by the routes."""
    global _PROVIDER, _CRON_SECRET
    _PROVIDER = provider or HeaderIdentityProvider()
    _CRON_SECRET = cron_secret


def _identify(request: Request) -> Optional[Identity]:
    return _PROVIDER.identify(request)


def _require_role(request: Request, role: str, operation: str, denied: BriefdeskError) -> Identity:
    identity = _identify(request)
    if identity is None:
        raise to_http_error(UnauthorizedError(), operation, "anonymous")
    if identity.role != role:
        raise to_http_error(denied, operation, identity.id)
    return identity


def require_client(request: Request) -> Identity:
    """FastAPI dependency: the caller must be an authenticated client.

    Any other role is treated as not signed in to the briefing surface (401).
    """
    return _require_role(request, CLIENT_ROLE, request.url.path, UnauthorizedError())


def require_admin(request: Request) -> Identity:
    """FastAPI dependency: the caller must be an authenticated admin."""
    return _require_role(
        request, ADMIN_ROLE, request.url.path, ForbiddenError("Admin role required")
    )


def require_maintenance_caller(request: Request) -> str:
    """FastAPI dependency for maintenance triggers.

    Accepts the scheduler secret (only when one is configured) or an
    admin identity. Returns a short label of who triggered the run.
    """
    presented = request.headers.get("X-Cron-Secret")
    if _CRON_SECRET and presented and hmac.compare_digest(presented, _CRON_SECRET):
        return "scheduler"

    identity = require_admin(request)
    return f"admin:{identity.id}"
