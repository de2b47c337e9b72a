"""SQL schema management for the Reviews domain.

Only SQLAlchemy-backed providers (sqlite, postgresql) have a schema to manage;
the in-memory provider used in development and tests is skipped.
"""

from protean.domain import Domain
from sqlalchemy import create_engine

SQL_PROVIDERS = ("sqlite", "postgresql")


def _sql_providers(domain: Domain):
    for _, provider in domain.providers.items():
        if provider.conn_info["provider"] in SQL_PROVIDERS:
            yield provider


def setup_db(domain: Domain) -> None:
    """Create tables for the Review aggregate, its entities and the rating records."""
    with domain.domain_context():
        for provider in _sql_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])

            # Touching a repository's _dao registers the model with SQLAlchemy
            records = (
                list(domain.registry.aggregates.values())
                + list(domain.registry.entities.values())
                + list(domain.registry.projections.values())
            )
            for record in records:
                if record.cls.meta_.provider == provider.name:
                    domain.repository_for(record.cls)._dao  # noqa: B018

            provider._metadata.create_all(engine)


def drop_db(domain: Domain) -> None:
    """Drop every table created by setup_db."""
    with domain.domain_context():
        for provider in _sql_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            provider._metadata.drop_all(engine)
