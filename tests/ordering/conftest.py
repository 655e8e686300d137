import pytest
from ordering.gateways import fake_collaborators
from ordering.gateways.port import TableStatus
from ordering.services import build_services


@pytest.fixture(scope="session")
def _ordering_domain():
    """Initialize the ordering domain once per session."""
    from ordering.domain import ordering

    ordering.init()
    return ordering


@pytest.fixture(scope="session", autouse=True)
def setup_db(_ordering_domain):
    from ordering.utils.db import drop_db, setup_db

    setup_db(_ordering_domain)

    yield

    drop_db(_ordering_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_ordering_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _ordering_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


# ---------------------------------------------------------------------------
# Collaborators and services
# ---------------------------------------------------------------------------
@pytest.fixture()
def collaborators():
    """In-memory sibling services seeded with a small catalogue."""
    bundle = fake_collaborators()
    bundle.inventory.add_product("prod-001", price=10.0, stock=50, name="Espresso")
    bundle.inventory.add_product("prod-002", price=5.0, stock=20, name="Croissant")
    bundle.inventory.add_product("prod-003", price=3.5, stock=2, name="Muffin")
    bundle.inventory.add_product("prod-off", price=8.0, stock=10, active=False, name="Seasonal tart")
    bundle.clients.add_client("cust-001", name="Ana Perez", email="ana@example.com", address="Calle 1 #2-3")
    bundle.clients.add_client("cust-002", name="Luis Gomez", email="luis@example.com")
    bundle.tables.add_table("table-1", 1)
    bundle.tables.add_table("table-2", 2, status=TableStatus.OCCUPIED)
    return bundle


@pytest.fixture()
def services(collaborators):
    return build_services(collaborators)


@pytest.fixture()
def inventory(collaborators):
    return collaborators.inventory


@pytest.fixture()
def promotions(collaborators):
    return collaborators.promotions


@pytest.fixture()
def tables(collaborators):
    return collaborators.tables


@pytest.fixture()
def email(collaborators):
    return collaborators.email


@pytest.fixture()
def receipts(collaborators):
    return collaborators.receipts


@pytest.fixture()
def payment_method():
    from ordering.payment.payment import PaymentMethod
    from protean import current_domain

    method = PaymentMethod(name="Cash")
    current_domain.repository_for(PaymentMethod).add(method)
    return method
