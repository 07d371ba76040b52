import pytest
from pydantic import ValidationError

from customer_registry.schemas.address import AddressCreate
from customer_registry.schemas.customer import CustomerCreate


def _address(**overrides):
    data = {"address_details": "12 MG Road", "city": "Pune", "state": "Maharashtra", "pin_code": "400001"}
    data.update(overrides)
    return AddressCreate(**data)


@pytest.mark.parametrize("pin_code", ["12A456", "012345", "40000", "4000011", "", "4११००१", "٤١١٠٠١"])
def test_invalid_pin_codes_are_rejected(pin_code):
    with pytest.raises(ValidationError, match="PIN code"):
        _address(pin_code=pin_code)


def test_valid_pin_code_is_accepted():
    assert _address(pin_code="400001").pin_code == "400001"


def test_address_text_fields_are_trimmed_and_checked():
    address = _address(address_details="  12 MG Road  ", city=" Pune ")
    assert address.address_details == "12 MG Road"
    assert address.city == "Pune"

    with pytest.raises(ValidationError, match="Address details must be at least 5 characters"):
        _address(address_details=" abc ")
    with pytest.raises(ValidationError, match="State must be at least 2 characters"):
        _address(state=" M ")


def test_is_primary_defaults_to_false():
    assert _address().is_primary is False


def test_customer_names_need_two_characters_after_trim():
    with pytest.raises(ValidationError, match="First name must be at least 2 characters"):
        CustomerCreate(first_name=" A ", last_name="Lee", phone_number="+15551234567")
    with pytest.raises(ValidationError, match="Last name must be at least 2 characters"):
        CustomerCreate(first_name="Ann", last_name="L", phone_number="+15551234567")


@pytest.mark.parametrize(
    "phone", ["0123456789", "+0123", "phone", "+1234567890123456789", "12-34", "+9١٥٥٥١٢٣٤", "९८७६५४३२१०"]
)
def test_invalid_phone_numbers_are_rejected(phone):
    with pytest.raises(ValidationError, match="Invalid phone number format"):
        CustomerCreate(first_name="Ann", last_name="Lee", phone_number=phone)


def test_phone_whitespace_is_stripped():
    customer = CustomerCreate(first_name="Ann", last_name="Lee", phone_number=" +1 555 123 4567 ")
    assert customer.phone_number == "+15551234567"


def test_email_is_optional_and_blank_means_none():
    assert CustomerCreate(first_name="Ann", last_name="Lee", phone_number="5551234567").email is None
    assert CustomerCreate(first_name="Ann", last_name="Lee", phone_number="5551234567", email="  ").email is None


@pytest.mark.parametrize("email", ["ann", "ann@x", "ann @x.com", "@x.com"])
def test_invalid_email_is_rejected(email):
    with pytest.raises(ValidationError, match="Invalid email format"):
        CustomerCreate(first_name="Ann", last_name="Lee", phone_number="5551234567", email=email)
