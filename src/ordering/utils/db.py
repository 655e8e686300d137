"""Schema management for SQL-backed providers of the ordering domain."""

from protean.domain import Domain
from sqlalchemy import create_engine

_SQL_PROVIDERS = ("sqlite", "postgresql")


def _sql_providers(domain: Domain):
    for _, provider in domain.providers.items():
        if provider.conn_info["provider"] in _SQL_PROVIDERS:
            yield provider


def setup_db(domain: Domain) -> None:
    """Create tables for every aggregate stored in a SQL provider."""
    with domain.domain_context():
        for provider in _sql_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])

            # Touching the DAO registers the aggregate's model with the provider's metadata
            for _, record in domain.registry.aggregates.items():
                if record.cls.meta_.provider == provider.name:
                    domain.repository_for(record.cls)._dao  # noqa: B018

            provider._metadata.create_all(engine)


def drop_db(domain: Domain) -> None:
    with domain.domain_context():
        for provider in _sql_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            provider._metadata.drop_all(engine)
