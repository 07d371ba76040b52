import logging
import math

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from customer_registry.database import store_errors
from customer_registry.errors import DuplicateEmailError, DuplicatePhoneError, NotFoundError, RegistryError, StoreError
from customer_registry.models.address import Address
from customer_registry.models.customer import Customer
from customer_registry.schemas.customer import (
    CustomerCreate,
    CustomerListParams,
    CustomerOut,
    CustomerPage,
    CustomerUpdate,
    Pagination,
)

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "first_name": Customer.first_name,
    "last_name": Customer.last_name,
    "phone_number": Customer.phone_number,
    "created_at": Customer.created_at,
}


def _customer_out(customer: Customer, address_count: int) -> CustomerOut:
    out = CustomerOut.model_validate(customer)
    out.address_count = address_count
    out.has_only_one_address = address_count == 1
    return out


def _duplicate_error(e: IntegrityError) -> RegistryError:
    """Pick the error kind from the violated constraint.

    psycopg exposes the constraint name on ``diag``. Other drivers only name it
    in the first line of the message; later lines may echo the rejected values.
    """
    message = str(e.orig)
    constraint = getattr(getattr(e.orig, "diag", None), "constraint_name", None)
    if constraint is None:
        constraint = message.splitlines()[0] if message else ""
    if "uq_customers_phone_number" in constraint or "customers.phone_number" in constraint:
        logger.info("Rejected duplicate phone number: %s", message)
        return DuplicatePhoneError()
    if "uq_customers_email" in constraint or "customers.email" in constraint:
        logger.info("Rejected duplicate email: %s", message)
        return DuplicateEmailError()
    logger.error("Integrity error on customers: %s", message)
    return StoreError(f"Could not save customer: {message}")


def _filter_conditions(params: CustomerListParams) -> list:
    conditions = []

    if params.search:
        conditions.append(
            or_(
                Customer.first_name.icontains(params.search, autoescape=True),
                Customer.last_name.icontains(params.search, autoescape=True),
                Customer.phone_number.icontains(params.search, autoescape=True),
                Customer.email.icontains(params.search, autoescape=True),
            )
        )

    # One address row has to satisfy every address filter that was given
    if params.city or params.state or params.pin_code:
        a2 = aliased(Address)
        address_filters = [a2.customer_id == Customer.id]
        if params.city:
            address_filters.append(a2.city.icontains(params.city, autoescape=True))
        if params.state:
            address_filters.append(a2.state.icontains(params.state, autoescape=True))
        if params.pin_code:
            address_filters.append(a2.pin_code.icontains(params.pin_code, autoescape=True))
        conditions.append(select(a2.id).where(*address_filters).exists())

    return conditions


def list_customers(db: Session, params: CustomerListParams) -> CustomerPage:
    conditions = _filter_conditions(params)

    sort_column = SORT_COLUMNS[params.sort_by]
    if params.sort_order == "ASC":
        ordering = (sort_column.asc(), Customer.id.asc())
    else:
        ordering = (sort_column.desc(), Customer.id.desc())

    with store_errors(db, "listing customers"):
        total = db.query(func.count(Customer.id)).filter(*conditions).scalar() or 0
        rows = (
            db.query(Customer, func.count(Address.id).label("address_count"))
            .outerjoin(Address, Address.customer_id == Customer.id)
            .filter(*conditions)
            .group_by(Customer.id)
            .order_by(*ordering)
            .offset((params.page - 1) * params.limit)
            .limit(params.limit)
            .all()
        )

    return CustomerPage(
        data=[_customer_out(customer, count) for customer, count in rows],
        pagination=Pagination(
            current_page=params.page,
            total_pages=math.ceil(total / params.limit),
            total_items=total,
            items_per_page=params.limit,
        ),
    )


def get_customer(db: Session, customer_id: int) -> CustomerOut:
    with store_errors(db, "fetching customer"):
        row = (
            db.query(Customer, func.count(Address.id).label("address_count"))
            .outerjoin(Address, Address.customer_id == Customer.id)
            .filter(Customer.id == customer_id)
            .group_by(Customer.id)
            .first()
        )
    if row is None:
        raise NotFoundError("Customer not found")
    customer, count = row
    return _customer_out(customer, count)


def create_customer(db: Session, data: CustomerCreate) -> CustomerOut:
    with store_errors(db, "creating customer"):
        customer = Customer(**data.model_dump())
        db.add(customer)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise _duplicate_error(e) from e
        db.refresh(customer)
        return _customer_out(customer, 0)


def update_customer(db: Session, customer_id: int, data: CustomerUpdate) -> CustomerOut:
    with store_errors(db, "updating customer"):
        try:
            updated = (
                db.query(Customer)
                .filter(Customer.id == customer_id)
                .update({**data.model_dump(), "updated_at": func.now()}, synchronize_session=False)
            )
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise _duplicate_error(e) from e
    if not updated:
        raise NotFoundError("Customer not found")
    return get_customer(db, customer_id)


def delete_customer(db: Session, customer_id: int) -> dict:
    """Delete a customer; its addresses go with it through the FK cascade."""
    with store_errors(db, "deleting customer"):
        address_count = (
            db.query(func.count(Address.id)).filter(Address.customer_id == customer_id).scalar() or 0
        )
        deleted = db.query(Customer).filter(Customer.id == customer_id).delete(synchronize_session=False)
        if not deleted:
            raise NotFoundError("Customer not found")
        db.commit()
    return {"id": customer_id, "addressesDeleted": address_count}


def customers_with_multiple_addresses(db: Session) -> list[CustomerOut]:
    address_count = func.count(Address.id)
    with store_errors(db, "listing customers with multiple addresses"):
        rows = (
            db.query(Customer, address_count.label("address_count"))
            .join(Address, Address.customer_id == Customer.id)
            .group_by(Customer.id)
            .having(address_count > 1)
            .order_by(address_count.desc(), Customer.id)
            .all()
        )
    return [_customer_out(customer, count) for customer, count in rows]


def customers_with_single_address(db: Session) -> list[CustomerOut]:
    address_count = func.count(Address.id)
    with store_errors(db, "listing customers with a single address"):
        rows = (
            db.query(Customer, address_count.label("address_count"))
            .join(Address, Address.customer_id == Customer.id)
            .group_by(Customer.id)
            .having(address_count == 1)
            .order_by(Customer.created_at.desc(), Customer.id.desc())
            .all()
        )
    return [_customer_out(customer, count) for customer, count in rows]
