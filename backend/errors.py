class MealOrderError(Exception):
    """Base class for errors raised by the meal-ordering backend."""


class ConfigurationError(MealOrderError):
    """Required configuration is missing; the affected service cannot run."""


class ValidationError(MealOrderError):
    """Input rejected before any network call or persistence."""


class AuthError(MealOrderError):
    pass


class PaymentError(MealOrderError):
    pass


class UnsupportedPaymentMethodError(PaymentError):
    pass


class TransportUnavailableError(PaymentError):
    """The transport itself could not be reached (no business decision was made)."""


class PaymentRejectedError(PaymentError):
    """The payment backend answered with a structured error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TropiPayError(MealOrderError):
    def __init__(self, message: str, status_code: int | None = None, payload=None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload
