class RegistryError(Exception):
    """Base class for errors reported to API callers."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RegistryError):
    status_code = 400
    default_message = "Invalid input"


class NotFoundError(RegistryError):
    status_code = 404
    default_message = "Not found"


class DuplicatePhoneError(RegistryError):
    status_code = 400
    default_message = "Phone number already exists"


class DuplicateEmailError(RegistryError):
    status_code = 400
    default_message = "Email already exists"


class StoreError(RegistryError):
    default_message = "Database error"


class StoreConnectionError(StoreError):
    default_message = "Could not open database"


class NotConnectedError(StoreError):
    default_message = "Database is not connected"


class SchemaError(StoreError):
    default_message = "Could not initialize database schema"


class ShutdownError(StoreError):
    default_message = "Error closing database"
