import re
from datetime import datetime

from pydantic import BaseModel, ValidationInfo, field_validator

PIN_CODE_PATTERN = re.compile(r"^[1-9][0-9]{5}$")

MIN_LENGTHS = {"address_details": 5, "city": 2, "state": 2}


class AddressCreate(BaseModel):
    address_details: str
    city: str
    state: str
    pin_code: str
    is_primary: bool = False

    @field_validator("address_details", "city", "state")
    @classmethod
    def text_min_length(cls, v: str, info: ValidationInfo) -> str:
        v = v.strip()
        minimum = MIN_LENGTHS[info.field_name]
        if len(v) < minimum:
            label = info.field_name.replace("_", " ").capitalize()
            raise ValueError(f"{label} must be at least {minimum} characters long")
        return v

    @field_validator("pin_code")
    @classmethod
    def pin_code_format(cls, v: str) -> str:
        v = v.strip()
        if not PIN_CODE_PATTERN.match(v):
            raise ValueError("PIN code must be 6 digits and cannot start with 0")
        return v


class AddressUpdate(AddressCreate):
    pass


class AddressOut(BaseModel):
    id: int
    customer_id: int
    address_details: str
    city: str
    state: str
    pin_code: str
    is_primary: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AddressSearchOut(AddressOut):
    """An address together with the owner fields shown in search results."""

    first_name: str
    last_name: str
    phone_number: str
