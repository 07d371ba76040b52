import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from customer_registry.config import settings

PHONE_PATTERN = re.compile(r"^\+?[1-9][0-9]{0,15}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

SORTABLE_FIELDS = ("first_name", "last_name", "phone_number", "created_at")
SORT_ORDERS = ("ASC", "DESC")


class CustomerCreate(BaseModel):
    first_name: str
    last_name: str
    phone_number: str
    email: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def name_min_length(cls, v: str, info: ValidationInfo) -> str:
        v = v.strip()
        if len(v) < 2:
            label = info.field_name.replace("_", " ").capitalize()
            raise ValueError(f"{label} must be at least 2 characters long")
        return v

    @field_validator("phone_number")
    @classmethod
    def phone_format(cls, v: str) -> str:
        v = re.sub(r"\s", "", v)
        if not PHONE_PATTERN.match(v):
            raise ValueError("Invalid phone number format")
        return v

    @field_validator("email")
    @classmethod
    def email_format(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email format")
        return v


class CustomerUpdate(CustomerCreate):
    """PUT replaces every field, so the shape rules are the same as on create."""


class CustomerOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    phone_number: str
    email: Optional[str] = None
    address_count: int = 0
    has_only_one_address: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CustomerListParams(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(default_factory=lambda: settings.DEFAULT_PAGE_SIZE, ge=1)
    search: str = ""
    city: str = ""
    state: str = ""
    pin_code: str = ""
    sort_by: str = "created_at"
    sort_order: str = "DESC"

    @field_validator("search", "city", "state", "pin_code", mode="before")
    @classmethod
    def strip_filter(cls, v):
        return (v or "").strip()

    # Unknown sort values fall back to the defaults instead of failing the request
    @field_validator("sort_by", mode="before")
    @classmethod
    def sort_by_default(cls, v):
        return v if v in SORTABLE_FIELDS else "created_at"

    @field_validator("sort_order", mode="before")
    @classmethod
    def sort_order_default(cls, v):
        v = (v or "").upper() if isinstance(v, str) else ""
        return v if v in SORT_ORDERS else "DESC"


class Pagination(BaseModel):
    current_page: int = Field(serialization_alias="currentPage")
    total_pages: int = Field(serialization_alias="totalPages")
    total_items: int = Field(serialization_alias="totalItems")
    items_per_page: int = Field(serialization_alias="itemsPerPage")


class CustomerPage(BaseModel):
    data: list[CustomerOut]
    pagination: Pagination
