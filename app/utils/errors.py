class DatabaseError(Exception):
    """Custom exception for database-related errors."""

    def __init__(self, message: str, error_code: str = "DB_ERROR"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class NotFoundError(Exception):
    """Custom exception for resource not found errors."""

    def __init__(
        self, message: str = "Resource not found", error_code: str = "NOT_FOUND"
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class FlightNumberValidationError(ValueError):
    """Raised for a flight identifier that is not a carrier code followed by a number."""

    def __init__(self, flight_number: str, error_code: str = "INVALID_FLIGHT_NUMBER"):
        message = f"Invalid flight number format: {flight_number!r}"
        super().__init__(message)
        self.flight_number = flight_number
        self.message = message
        self.error_code = error_code


class ProviderError(Exception):
    """Transient failure talking to an external status or weather provider."""

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        error_code: str = "PROVIDER_ERROR",
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.error_code = error_code


class ProviderResponseError(ProviderError):
    """Provider answered with a payload we cannot interpret."""

    def __init__(self, message: str, provider: str):
        super().__init__(message, provider, error_code="PROVIDER_BAD_RESPONSE")


class NotificationPersistenceError(DatabaseError):
    """Writing a notification row failed."""

    def __init__(self, message: str):
        super().__init__(message, error_code="NOTIFICATION_WRITE_FAILED")
