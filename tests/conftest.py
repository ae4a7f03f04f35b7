import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the config overlay before the domain is imported, then initialize it."""
    os.environ["PROTEAN_ENV"] = session.config.option.env

    import bootstrap

    bootstrap.init()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session")
def _domain():
    from storefront.domain import storefront

    return storefront


@pytest.fixture(scope="session", autouse=True)
def setup_db(_domain):
    from shared.db import drop_db, setup_db

    setup_db(_domain)

    yield

    drop_db(_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_domain):
    """Push the domain context; afterwards reset rows, events, cache, rate limits and the fake mailbox."""
    ctx = _domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    from notifications.channel import reset_channels
    from shared.cache import get_cache

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()
    get_cache().client.flushdb()
    reset_channels()
    ctx.pop()


# ---------------------------------------------------------------------------
# Shared factories
# ---------------------------------------------------------------------------
def _register(name, email, is_admin=False):
    from protean import current_domain

    from identity import account
    from identity.user import User

    result = account.register(name=name, email=email, password="password123", is_admin=is_admin)
    user = current_domain.repository_for(User).get(result["user"]["id"])
    return user, result["token"]


@pytest.fixture()
def customer():
    return _register("Jane Customer", "jane@example.com")


@pytest.fixture()
def other_customer():
    return _register("Bob Customer", "bob@example.com")


@pytest.fixture()
def admin():
    return _register("Admin", "admin@example.com", is_admin=True)


@pytest.fixture()
def make_product():
    from protean import current_domain

    from catalog.product.management import CreateProduct
    from catalog.product.product import Product

    def _make(name="Test Product", price="10.00", stock=10, description="A product"):
        command = CreateProduct(name=name, price=price, stock=stock, description=description)
        result = current_domain.process(command, asynchronous=False)
        return current_domain.repository_for(Product).get(result["id"])

    return _make


@pytest.fixture()
def reload():
    """Fetch the stored state of an aggregate."""
    from protean import current_domain

    def _reload(aggregate):
        return current_domain.repository_for(type(aggregate)).get(aggregate.id)

    return _reload


@pytest.fixture()
def client():
    from fastapi.testclient import TestClient

    from app import app

    return TestClient(app)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth():
    return bearer
