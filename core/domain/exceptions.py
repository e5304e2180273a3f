"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions.

Errors fall into five groups callers can react to differently:
validation (fix the input), resource exhaustion (add credits or wait for
inventory), conflict (terminal for that key), not found, and storage
(nothing was committed; safe to retry).
"""
from typing import Iterable, Optional


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class AllocationError(DomainException):
    """Base exception for key allocation and revocation errors."""

    pass


class InvalidQuantityError(AllocationError):
    """Raised when a requested quantity is outside the accepted range."""

    def __init__(self, quantity, maximum: int):
        super().__init__(
            f"Quantity must be an integer between 1 and {maximum}, got {quantity!r}",
            code="INVALID_QUANTITY",
        )
        self.quantity = quantity
        self.maximum = maximum


class InvalidKeyClassError(AllocationError):
    """Raised when a key class is not one of the known classes."""

    def __init__(self, message: str = "Invalid key class"):
        super().__init__(message, code="INVALID_KEY_CLASS")


class InvalidPaginationError(AllocationError):
    """Raised when page or page size is out of range."""

    def __init__(self, message: str = "Invalid pagination parameters"):
        super().__init__(message, code="INVALID_PAGINATION")


class InvalidCreditAmountError(AllocationError):
    """Raised when a credit amount is not a positive integer."""

    def __init__(self, message: str = "Credit amount must be a positive integer"):
        super().__init__(message, code="INVALID_CREDIT_AMOUNT")


class InvalidPrincipalError(AllocationError):
    """Raised when a principal id is empty or too long."""

    def __init__(self, message: str = "Invalid principal ID"):
        super().__init__(message, code="INVALID_PRINCIPAL")


class InvalidKeyStatusError(AllocationError):
    """Raised when a key status filter names no known status."""

    def __init__(self, message: str = "Invalid key status"):
        super().__init__(message, code="INVALID_KEY_STATUS")


class InsufficientCreditsError(AllocationError):
    """Raised when a principal cannot pay for the requested keys."""

    def __init__(self, required: int, available: int):
        super().__init__(
            f"Insufficient credits. Required: {required}, Available: {available}",
            code="INSUFFICIENT_CREDITS",
        )
        self.required = required
        self.available = available


class InsufficientInventoryError(AllocationError):
    """Raised when a pool partition holds fewer keys than requested."""

    def __init__(self, requested: int, available: int, key_class: Optional[str] = None):
        label = f"{key_class} keys" if key_class else "keys"
        super().__init__(
            f"Not enough {label} available. Requested: {requested}, Available: {available}",
            code="INSUFFICIENT_INVENTORY",
        )
        self.requested = requested
        self.available = available
        self.key_class = key_class


class NotFoundError(AllocationError):
    """Raised when a batch or key does not exist for the caller."""

    def __init__(self, message: str = "Not found", code: str = "NOT_FOUND"):
        super().__init__(message, code=code)


class BatchNotFoundError(NotFoundError):
    """Raised when a generation batch is not found or not owned by the caller."""

    def __init__(self, message: str = "Generation batch not found"):
        super().__init__(message, code="BATCH_NOT_FOUND")


class KeyNotFoundError(NotFoundError):
    """Raised when an assigned key is not found or not owned by the caller."""

    def __init__(self, message: str = "Key not found"):
        super().__init__(message, code="KEY_NOT_FOUND")


class AlreadyConsumedError(AllocationError):
    """Raised when consuming a key that was already consumed."""

    def __init__(self, message: str = "Key has already been consumed"):
        super().__init__(message, code="ALREADY_CONSUMED")


class KeyNotActiveError(AllocationError):
    """Raised when a transition requires an active key."""

    def __init__(self, message: str = "Key is not active"):
        super().__init__(message, code="KEY_NOT_ACTIVE")


class IdempotencyConflictError(AllocationError):
    """Raised when an idempotency key is reused with different parameters."""

    def __init__(self, message: str = "Idempotency key was used with different parameters"):
        super().__init__(message, code="IDEMPOTENCY_CONFLICT")


class DuplicateIdempotencyKeyError(AllocationError):
    """Raised by batch storage when (principal, idempotency key) already exists."""

    def __init__(self, message: str = "Idempotency key already recorded"):
        super().__init__(message, code="DUPLICATE_IDEMPOTENCY_KEY")


class StorageFailure(AllocationError):
    """Raised when the underlying storage fails. Nothing was committed."""

    def __init__(self, message: str = "Storage operation failed", code: str = "STORAGE_FAILURE"):
        super().__init__(message, code=code)


class AllocationCancelledError(StorageFailure):
    """Raised when an allocation is cancelled or times out before commit."""

    def __init__(self, message: str = "Allocation cancelled before commit"):
        super().__init__(message, code="ALLOCATION_CANCELLED")


class InventoryException(DomainException):
    """Base exception for pool administration errors."""

    pass


class DuplicateKeyValueError(InventoryException):
    """Raised when key values being imported already exist."""

    def __init__(self, values: Iterable[str]):
        self.values = sorted(set(values))
        preview = ", ".join(self.values[:5])
        super().__init__(
            f"{len(self.values)} key value(s) already exist: {preview}",
            code="DUPLICATE_KEY_VALUE",
        )


class KeySourceConfigurationError(InventoryException):
    """Raised when the random key source is misconfigured."""

    def __init__(self, message: str = "Invalid key source configuration"):
        super().__init__(message, code="KEY_SOURCE_MISCONFIGURED")
