from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from customer_registry.config import settings
from customer_registry.database import get_db
from customer_registry.schemas.address import AddressCreate, AddressOut
from customer_registry.schemas.customer import CustomerCreate, CustomerListParams, CustomerUpdate
from customer_registry.services import address_service, customer_service

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.get("")
def list_customers(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1),
    search: str = "",
    city: str = "",
    state: str = "",
    pin_code: str = "",
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("DESC", alias="sortOrder"),
    db: Session = Depends(get_db),
):
    params = CustomerListParams(
        page=page,
        limit=limit,
        search=search,
        city=city,
        state=state,
        pin_code=pin_code,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    result = customer_service.list_customers(db, params)
    return {
        "message": "Customers retrieved successfully",
        "data": result.data,
        "pagination": result.pagination,
    }


@router.post("", status_code=201)
def create_customer(body: CustomerCreate, db: Session = Depends(get_db)):
    customer = customer_service.create_customer(db, body)
    return {"message": "Customer created successfully", "data": customer}


# ---------------------------------------------------------------------------
# Aggregate views (MUST be before /{customer_id} to avoid path conflict)
# ---------------------------------------------------------------------------


@router.get("/multiple-addresses")
def customers_with_multiple_addresses(db: Session = Depends(get_db)):
    return {
        "message": "Customers with multiple addresses retrieved successfully",
        "data": customer_service.customers_with_multiple_addresses(db),
    }


@router.get("/single-address")
def customers_with_single_address(db: Session = Depends(get_db)):
    return {
        "message": "Customers with single address retrieved successfully",
        "data": customer_service.customers_with_single_address(db),
    }


# ---------------------------------------------------------------------------
# Single customer
# ---------------------------------------------------------------------------


@router.get("/{customer_id}")
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    return {"message": "Customer retrieved successfully", "data": customer_service.get_customer(db, customer_id)}


@router.put("/{customer_id}")
def update_customer(customer_id: int, body: CustomerUpdate, db: Session = Depends(get_db)):
    customer = customer_service.update_customer(db, customer_id, body)
    return {"message": "Customer updated successfully", "data": customer}


@router.delete("/{customer_id}")
def delete_customer(customer_id: int, db: Session = Depends(get_db)):
    result = customer_service.delete_customer(db, customer_id)
    return {"message": "Customer deleted successfully", "data": result}


@router.get("/{customer_id}/addresses")
def list_customer_addresses(customer_id: int, db: Session = Depends(get_db)):
    addresses = address_service.list_addresses(db, customer_id)
    return {
        "message": "Addresses retrieved successfully",
        "data": [AddressOut.model_validate(a) for a in addresses],
    }


@router.post("/{customer_id}/addresses", status_code=201)
def create_customer_address(customer_id: int, body: AddressCreate, db: Session = Depends(get_db)):
    address = address_service.create_address(db, customer_id, body)
    return {"message": "Address added successfully", "data": AddressOut.model_validate(address)}
