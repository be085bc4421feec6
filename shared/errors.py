"""Error taxonomy shared by the domain services and the function registry."""

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    AUTHORIZATION = "authorization"
    INSUFFICIENT_STOCK = "insufficient_stock"
    EXTERNAL_UNAVAILABLE = "external_unavailable"
    INTERNAL = "internal"


class CommerceError(Exception):
    """Base exception for all domain errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(CommerceError):
    """Missing or invalid input. Reported back to the conversation as a correction."""

    kind = ErrorKind.VALIDATION


class NotFoundError(CommerceError):
    """Unknown function, product, category or order."""

    kind = ErrorKind.NOT_FOUND


class AuthorizationError(CommerceError):
    """Admin-only operation requested by a non-admin caller."""

    kind = ErrorKind.AUTHORIZATION

    def __init__(self, message: str = "Admin access required. This function is only available to authorized administrators."):
        super().__init__(message)


class InsufficientStockError(CommerceError):
    kind = ErrorKind.INSUFFICIENT_STOCK

    def __init__(self, product_name: str, available: int, requested: int):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {product_name}: requested {requested}, only {available} available."
        )


class ExternalUnavailableError(CommerceError):
    """Generation service or messaging channel could not be reached."""

    kind = ErrorKind.EXTERNAL_UNAVAILABLE


class InternalError(CommerceError):
    kind = ErrorKind.INTERNAL
