import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError

from customer_registry.database import Base, Store
from customer_registry.errors import NotConnectedError, SchemaError, StoreConnectionError


def test_operations_before_connect_fail():
    store = Store("sqlite+pysqlite:///:memory:")
    assert store.is_connected is False
    with pytest.raises(NotConnectedError):
        store.get_connection()
    with pytest.raises(NotConnectedError):
        store.session()
    with pytest.raises(NotConnectedError):
        store.initialize()


def test_close_is_idempotent():
    store = Store("sqlite+pysqlite:///:memory:")
    store.close()
    store.connect()
    store.close()
    store.close()
    assert store.is_connected is False


def test_operations_after_close_fail(store):
    store.close()
    with pytest.raises(NotConnectedError):
        store.session()
    with pytest.raises(NotConnectedError):
        store.get_connection()


def test_connect_to_unopenable_location(tmp_path):
    store = Store(f"sqlite:///{tmp_path}/missing-dir/customers.db")
    with pytest.raises(StoreConnectionError):
        store.connect()
    assert store.is_connected is False


def test_connect_to_file_database(tmp_path):
    store = Store(f"sqlite:///{tmp_path}/customers.db")
    store.connect()
    store.initialize()
    store.close()
    assert (tmp_path / "customers.db").exists()


def test_initialize_creates_tables_and_indexes(store):
    inspector = inspect(store.get_connection())

    assert {"customers", "addresses"} <= set(inspector.get_table_names())
    assert "idx_customers_phone" in {ix["name"] for ix in inspector.get_indexes("customers")}
    assert {
        "idx_addresses_customer",
        "idx_addresses_city",
        "idx_addresses_state",
        "idx_addresses_pin",
    } <= {ix["name"] for ix in inspector.get_indexes("addresses")}

    fks = inspector.get_foreign_keys("addresses")
    assert fks[0]["referred_table"] == "customers"
    assert fks[0]["options"].get("ondelete") == "CASCADE"


def test_initialize_is_idempotent(store):
    store.initialize()
    store.initialize()
    assert {"customers", "addresses"} <= set(inspect(store.get_connection()).get_table_names())


def test_initialize_keeps_going_after_a_failed_table(monkeypatch):
    store = Store("sqlite+pysqlite:///:memory:")
    store.connect()
    create_all = Base.metadata.create_all

    def failing_create_all(bind=None, tables=None, checkfirst=True):
        if tables and tables[0].name == "customers":
            raise OperationalError("CREATE TABLE customers", {}, Exception("disk I/O error"))
        return create_all(bind=bind, tables=tables, checkfirst=checkfirst)

    monkeypatch.setattr(Base.metadata, "create_all", failing_create_all)

    with pytest.raises(SchemaError, match="customers"):
        store.initialize()

    tables = set(inspect(store.get_connection()).get_table_names())
    assert "addresses" in tables
    assert "customers" not in tables
    store.close()
