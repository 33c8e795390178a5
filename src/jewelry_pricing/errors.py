"""
Error taxonomy for the pricing engine.

Every error carries an HTTP-equivalent status code and a machine-readable
error code so a web layer can render it without a lookup table.
"""
from typing import Any, Optional


class PricingError(Exception):
    """Base error with a structured payload."""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.status_code = status_code or self.status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Render as the response body used by the API layer."""
        body = {
            "success": False,
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(PricingError):
    """Bad request parameter or out-of-range configuration value."""

    status_code = 400
    error_code = "VALIDATION_ERROR"
    message = "Validation failed"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None,
                 errors: Optional[list[str]] = None):
        details = {}
        if field:
            details["field"] = field
        if errors:
            details["errors"] = errors
        super().__init__(message, details=details)
        self.field = field
        self.errors = errors or []


class NotFoundError(PricingError):
    """Category, table or rate record missing."""

    status_code = 404
    error_code = "NOT_FOUND"
    message = "Resource not found"


class RatesNotConfiguredError(NotFoundError):
    """The shop has never published a rate."""

    error_code = "RATES_NOT_CONFIGURED"
    message = "Rates not configured for this shop"


class RateInvariantError(PricingError):
    """Raised on rate writes where a selling rate does not exceed its buying rate."""

    status_code = 400
    error_code = "RATE_VALIDATION_ERROR"
    message = "Selling rates must be higher than buying rates"


class ConfigurationError(PricingError):
    """A rate table cell references a row or column that does not exist."""

    status_code = 422
    error_code = "CONFIGURATION_ERROR"
    message = "Rate table configuration is incomplete"


class PermissionDeniedError(PricingError):
    status_code = 403
    error_code = "FORBIDDEN"
    message = "Your role is not allowed to perform this action"


class RatesLockedError(PricingError):
    """Calculation is blocked until today's rate is published."""

    status_code = 423
    error_code = "RATES_LOCKED"
    message = "Rates must be updated before calculating"

    def __init__(self, payload: dict[str, Any]):
        super().__init__(payload.get("message"))
        self.payload = payload

    def to_dict(self) -> dict[str, Any]:
        return self.payload
