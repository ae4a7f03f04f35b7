"""Schema management and SQL access to the domain's database models.

Aggregates are persisted through Protean repositories. Read paths that need
SQL the repository API has no words for (joins, aggregates, escaped
``LIKE``) select against the provider's generated models through
``model_for`` and ``session_for``.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from protean.domain import Domain
from protean.utils.globals import current_domain, current_uow
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

_SQL_PROVIDERS = ("sqlite", "postgresql")


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def _load_models(domain: Domain, provider_name: str) -> None:
    registry = domain.registry
    for records in (registry.aggregates, registry.entities, registry.projections):
        for _, record in records.items():
            if record.cls.meta_.provider == provider_name:
                domain.repository_for(record.cls)._dao  # noqa: B018

    # Outbox tables are registered as internal elements
    if hasattr(domain, "_outbox_repos") and provider_name in domain._outbox_repos:
        domain._outbox_repos[provider_name]._dao  # noqa: B018


def setup_db(domain: Domain) -> None:
    """Create every table the domain's SQL providers need."""
    with domain.domain_context():
        for name, provider in domain.providers.items():
            if provider.conn_info["provider"] in _SQL_PROVIDERS:
                _load_models(domain, name)
                engine = create_engine(provider.conn_info["database_uri"])
                provider._metadata.create_all(engine)
                engine.dispose()


def drop_db(domain: Domain) -> None:
    """Drop every table the domain's SQL providers created."""
    with domain.domain_context():
        for name, provider in domain.providers.items():
            if provider.conn_info["provider"] in _SQL_PROVIDERS:
                _load_models(domain, name)
                engine = create_engine(provider.conn_info["database_uri"])
                provider._metadata.drop_all(engine)
                engine.dispose()


def model_for(element_cls) -> type:
    """The SQLAlchemy model backing an aggregate, entity or projection."""
    return current_domain.repository_for(element_cls)._dao.database_model_cls


@contextmanager
def session_for(element_cls) -> Iterator[Session]:
    """Yield the session that sees ``element_cls`` rows.

    Inside a unit of work this is the transaction's session, so pending
    changes are visible. Outside one, a standalone session is opened and
    closed around the block.
    """
    provider_name = element_cls.meta_.provider
    if current_uow:
        yield current_uow.get_session(provider_name)
        return

    session = current_domain.providers[provider_name].get_connection()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
