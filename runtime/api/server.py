"""
FastAPI application entry point for the Briefdesk runtime.

Responsibilities:
- create the FastAPI app
- construct shared singletons through runtime.services.build_services
- include briefing routes under /briefing and maintenance routes under
  /admin/scheduled

Start locally with:

    uvicorn runtime.api.server:app --reload
"""

import logging
from typing import Dict, Optional

from fastapi import FastAPI

from configs.settings import settings
from runtime.services import Services, build_services
from . import auth, briefing_routes, maintenance_routes


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def create_app(
    services: Optional[Services] = None,
    identity_provider: Optional[auth.IdentityProvider] = None,
    cron_secret: Optional[str] = settings.cron_secret,
) -> FastAPI:
    """Build the app. Tests pass their own services and identity provider."""
    services = services or build_services()

    app = FastAPI(title="Briefdesk Runtime")
    app.state.services = services

    # Initialize the router modules with our shared objects, then include them.
    auth.init_auth(provider=identity_provider, cron_secret=cron_secret)
    briefing_routes.init_routes(briefing_agent=services.agent)
    maintenance_routes.init_routes(task_runner=services.task_runner)

    app.include_router(briefing_routes.router, prefix="/briefing")
    app.include_router(maintenance_routes.router, prefix="/admin/scheduled")

    @app.get("/healthz")
    def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    return app


configure_logging()
app = create_app()
