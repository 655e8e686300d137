"""Ordering service FastAPI application: the composition root.

Builds settings, collaborator adapters and application services once and
hands them to the app factory.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from ordering.api.application import create_app
from ordering.config import ServiceSettings
from ordering.domain import ordering
from ordering.gateways import build_collaborators
from ordering.services import build_services
from ordering.utils.logging import configure_logging

# PROTEAN_ENV selects the domain.toml overlay ("production" → PostgreSQL)
configure_logging()
ordering.init()

settings = ServiceSettings.from_env()
services = build_services(build_collaborators(settings))

app = create_app(ordering, services, cors_origins=settings.cors_origins)
