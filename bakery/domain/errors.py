"""Error taxonomy shared by services and the HTTP boundary.

Every domain failure is an `AppError` carrying the HTTP status it maps to.
Messages of 500-class errors are never shown to clients.
"""
from typing import Optional


class AppError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message)
        self.message = message

    @property
    def public_message(self) -> str:
        if self.status_code >= 500:
            return "An unexpected error occurred"
        return self.message


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Validation failed", details: Optional[list[dict]] = None):
        super().__init__(message)
        self.details = details or []

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, details=[{"field": field, "message": message}])


class AuthenticationError(AppError):
    status_code = 401
    code = "AUTH_ERROR"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ForbiddenError(AppError):
    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")
        self.resource = resource


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"

    def __init__(self, message: str = "Resource conflict"):
        super().__init__(message)


class BusinessRuleError(ConflictError):
    code = "BUSINESS_RULE"


class InvalidStateTransition(AppError):
    status_code = 400
    code = "INVALID_STATE_TRANSITION"

    def __init__(self, resource: str, current_state: str, target_state: str):
        super().__init__(f"Cannot transition {resource} from {current_state} to {target_state}")
        self.resource = resource
        self.current_state = current_state
        self.target_state = target_state


class InsufficientInventory(ConflictError):
    code = "INSUFFICIENT_INVENTORY"

    def __init__(self, menu_item_id: int, pickup_date, requested: int, message: Optional[str] = None):
        super().__init__(message or f"Not enough inventory for menu item {menu_item_id} on {pickup_date}")
        self.menu_item_id = menu_item_id
        self.pickup_date = pickup_date
        self.requested = requested


class PaymentNotCompleted(AppError):
    status_code = 400
    code = "PAYMENT_NOT_COMPLETED"

    def __init__(self, message: str = "Payment not completed"):
        super().__init__(message)


class WebhookSignatureError(AppError):
    status_code = 400
    code = "INVALID_SIGNATURE"

    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message)


class RateLimitExceeded(AppError):
    status_code = 429
    code = "RATE_LIMIT"

    def __init__(self, retry_after: int, message: str = "Too many requests"):
        super().__init__(message)
        self.retry_after = retry_after


class PaymentProviderError(AppError):
    # retryable: the provider may succeed on the next delivery
    status_code = 502
    code = "PAYMENT_PROVIDER_ERROR"

    @property
    def public_message(self) -> str:
        return "Payment provider unavailable, please retry"


class InternalError(AppError):
    pass
