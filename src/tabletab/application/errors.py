from __future__ import annotations

from typing import Any


class OrderServiceError(Exception):
    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class OrderValidationError(OrderServiceError):
    pass


class InvalidStatusTransitionError(OrderValidationError):
    pass


class OrderNotFoundError(OrderServiceError):
    pass


class BatchNotFoundError(OrderServiceError):
    pass


class OrderConflictError(OrderServiceError):
    pass


class ActiveOrderExistsError(OrderConflictError):
    pass


class OrderCompletedError(OrderConflictError):
    """Raised when an edit targets an order that was already completed."""


class OrderAlreadyFinalError(OrderConflictError):
    """Raised when serve or advance is attempted on an order with no further step."""


class OrderAlreadyCompletedError(OrderConflictError):
    pass


class ConcurrentUpdateError(OrderConflictError):
    pass


class UnauthorizedError(OrderServiceError):
    pass


class MissingCredentialsError(UnauthorizedError):
    pass


class InvalidCredentialsError(UnauthorizedError):
    pass
