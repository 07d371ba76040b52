import pytest
from fastapi.testclient import TestClient

from customer_registry.database import Store
from customer_registry.main import create_app
from customer_registry.schemas.address import AddressCreate
from customer_registry.schemas.customer import CustomerCreate
from customer_registry.services import address_service, customer_service

# ────────────────────────────────────────────────
# Store and session
# ────────────────────────────────────────────────


@pytest.fixture
def store():
    """A connected, initialized store on a private in-memory database."""
    store = Store("sqlite+pysqlite:///:memory:")
    store.connect()
    store.initialize()
    yield store
    store.close()


@pytest.fixture
def db(store):
    session = store.session()
    yield session
    session.close()


# ────────────────────────────────────────────────
# API client
# ────────────────────────────────────────────────


@pytest.fixture
def client(store):
    app = create_app(store)
    with TestClient(app) as c:
        yield c


# ────────────────────────────────────────────────
# Data helpers
# ────────────────────────────────────────────────


@pytest.fixture
def make_customer(db):
    counter = {"n": 0}

    def _make(first_name="Test", last_name="User", phone_number=None, email=None):
        counter["n"] += 1
        if phone_number is None:
            phone_number = f"+9190000000{counter['n']:02d}"
        data = CustomerCreate(
            first_name=first_name, last_name=last_name, phone_number=phone_number, email=email
        )
        return customer_service.create_customer(db, data)

    return _make


@pytest.fixture
def make_address(db):
    def _make(customer_id, city="Pune", state="Maharashtra", pin_code="411001", is_primary=False,
              address_details="12 MG Road"):
        data = AddressCreate(
            address_details=address_details,
            city=city,
            state=state,
            pin_code=pin_code,
            is_primary=is_primary,
        )
        return address_service.create_address(db, customer_id, data)

    return _make
