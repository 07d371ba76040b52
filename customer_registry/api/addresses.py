from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from customer_registry.database import get_db
from customer_registry.schemas.address import AddressOut, AddressUpdate
from customer_registry.services import address_service

router = APIRouter(prefix="/addresses", tags=["Addresses"])


@router.get("/search")
def search_addresses(city: str = "", state: str = "", pin_code: str = "", db: Session = Depends(get_db)):
    """Find addresses whose city, state and PIN code contain the given values."""
    results = address_service.search_addresses(db, city=city, state=state, pin_code=pin_code)
    return {"message": "Addresses found successfully", "data": results}


@router.put("/{address_id}")
def update_address(address_id: int, body: AddressUpdate, db: Session = Depends(get_db)):
    address = address_service.update_address(db, address_id, body)
    return {"message": "Address updated successfully", "data": AddressOut.model_validate(address)}


@router.delete("/{address_id}")
def delete_address(address_id: int, db: Session = Depends(get_db)):
    result = address_service.delete_address(db, address_id)
    return {"message": "Address deleted successfully", "data": result}
