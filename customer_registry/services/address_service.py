import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from customer_registry.database import store_errors
from customer_registry.errors import NotFoundError, ValidationError
from customer_registry.models.address import Address
from customer_registry.models.customer import Customer
from customer_registry.schemas.address import AddressCreate, AddressOut, AddressSearchOut, AddressUpdate

logger = logging.getLogger(__name__)


def _clear_primary(db: Session, customer_id: int, exclude_id: int | None = None) -> int:
    """Unset is_primary on the customer's addresses, optionally sparing one row."""
    q = db.query(Address).filter(Address.customer_id == customer_id, Address.is_primary.is_(True))
    if exclude_id is not None:
        q = q.filter(Address.id != exclude_id)
    cleared = q.update({"is_primary": False}, synchronize_session=False)
    logger.debug("Cleared primary flag on %d address(es) of customer %s", cleared, customer_id)
    return cleared


def list_addresses(db: Session, customer_id: int) -> list[Address]:
    with store_errors(db, "listing addresses"):
        return (
            db.query(Address)
            .filter(Address.customer_id == customer_id)
            .order_by(Address.is_primary.desc(), Address.created_at.asc(), Address.id.asc())
            .all()
        )


def get_address(db: Session, address_id: int) -> Address | None:
    return db.query(Address).filter(Address.id == address_id).first()


def create_address(db: Session, customer_id: int, data: AddressCreate) -> Address:
    with store_errors(db, "creating address"):
        customer = db.query(Customer.id).filter(Customer.id == customer_id).first()
        if customer is None:
            raise NotFoundError("Customer not found")

        # Two separate steps: another writer can slip in between them
        if data.is_primary:
            _clear_primary(db, customer_id)
            db.commit()

        address = Address(customer_id=customer_id, **data.model_dump())
        db.add(address)
        db.commit()
        db.refresh(address)
        return address


def update_address(db: Session, address_id: int, data: AddressUpdate) -> Address:
    with store_errors(db, "updating address"):
        owner = db.query(Address.customer_id).filter(Address.id == address_id).first()
        if owner is None:
            raise NotFoundError("Address not found")

        if data.is_primary:
            _clear_primary(db, owner.customer_id, exclude_id=address_id)
            db.commit()

        updated = (
            db.query(Address)
            .filter(Address.id == address_id)
            .update({**data.model_dump(), "updated_at": func.now()}, synchronize_session=False)
        )
        if not updated:
            # Row vanished between the lookup and the update
            raise NotFoundError("Address not found")
        db.commit()
        return get_address(db, address_id)


def delete_address(db: Session, address_id: int) -> dict:
    with store_errors(db, "deleting address"):
        deleted = db.query(Address).filter(Address.id == address_id).delete(synchronize_session=False)
        if not deleted:
            raise NotFoundError("Address not found")
        db.commit()
    return {"id": address_id}


def search_addresses(db: Session, city: str = "", state: str = "", pin_code: str = "") -> list[AddressSearchOut]:
    city, state, pin_code = (city or "").strip(), (state or "").strip(), (pin_code or "").strip()
    if not (city or state or pin_code):
        raise ValidationError("At least one search parameter is required")

    q = db.query(Address, Customer.first_name, Customer.last_name, Customer.phone_number).join(
        Customer, Address.customer_id == Customer.id
    )
    if city:
        q = q.filter(Address.city.icontains(city, autoescape=True))
    if state:
        q = q.filter(Address.state.icontains(state, autoescape=True))
    if pin_code:
        q = q.filter(Address.pin_code.icontains(pin_code, autoescape=True))

    with store_errors(db, "searching addresses"):
        rows = q.order_by(Customer.first_name, Customer.last_name, Address.id).all()

    return [
        AddressSearchOut(
            **AddressOut.model_validate(address).model_dump(),
            first_name=first_name,
            last_name=last_name,
            phone_number=phone_number,
        )
        for address, first_name, last_name, phone_number in rows
    ]
