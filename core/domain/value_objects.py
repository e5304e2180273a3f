"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Union

from core.domain.exceptions import (
    InvalidKeyClassError,
    InvalidKeyStatusError,
    InvalidPrincipalError,
    InvalidQuantityError,
)

# Upper bound for a single draw/allocation request.
MAX_DRAW_QUANTITY = 100


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects.

    Value objects are immutable and compared by value.
    """

    def __eq__(self, other):
        """Compare value objects by their attributes."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self):
        """Make value objects hashable."""
        return hash(tuple(sorted(self.__dict__.items())))


@dataclass(frozen=True)
class PrincipalId(ValueObject):
    """Identifier of an authenticated account holding credits."""

    value: str

    def __post_init__(self):
        """Validate principal identifier."""
        if not self.value or not str(self.value).strip():
            raise InvalidPrincipalError("Principal ID cannot be empty")
        if len(str(self.value)) > 255:
            raise InvalidPrincipalError("Principal ID too long")

    def __str__(self) -> str:
        """Return principal id as string."""
        return str(self.value)


@dataclass(frozen=True)
class KeyValue(ValueObject):
    """Raw key material."""

    value: str

    def __post_init__(self):
        """Validate key value."""
        if not self.value or len(self.value.strip()) == 0:
            raise ValueError("Key value cannot be empty")
        if len(self.value) > 255:
            raise ValueError("Key value too long")
        if self.value != self.value.strip():
            raise ValueError("Key value cannot have surrounding whitespace")

    def __str__(self) -> str:
        """Return key value as string."""
        return self.value


class KeyClass(Enum):
    """
    Duration tier of a key.

    Labels keys and partitions the pool; it carries no other behavior.
    """

    EPHEMERAL_SHORT = "day"
    EPHEMERAL_MEDIUM = "week"
    EPHEMERAL_LONG = "month"
    PERMANENT = "lifetime"

    def __str__(self) -> str:
        """Return key class as string."""
        return self.value

    @property
    def label(self) -> str:
        """Human readable label, e.g. 'Day'."""
        return self.value.capitalize()

    @classmethod
    def parse(cls, raw: Union["KeyClass", str]) -> "KeyClass":
        """
        Resolve a key class from an enum member, its value or its name.

        Args:
            raw: KeyClass, value ('day') or name ('EPHEMERAL_SHORT')

        Returns:
            KeyClass member

        Raises:
            InvalidKeyClassError: If the input names no key class
        """
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            candidate = raw.strip()
            for member in cls:
                if candidate.lower() == member.value or candidate.upper() == member.name:
                    return member
        raise InvalidKeyClassError(f"Invalid key class: {raw!r}")


class KeyStatus(Enum):
    """Lifecycle status of an assigned key."""

    ACTIVE = "active"
    CONSUMED = "consumed"
    EXPIRED = "expired"
    REVOKED = "revoked"

    def __str__(self) -> str:
        """Return status as string."""
        return self.value

    @classmethod
    def parse(cls, raw: Union["KeyStatus", str]) -> "KeyStatus":
        """Resolve a status from an enum member or its value."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError as exc:
            raise InvalidKeyStatusError(f"Invalid key status: {raw!r}") from exc


class PoolEntryStatus(Enum):
    """State of an inventory entry."""

    AVAILABLE = "available"
    DRAWN = "drawn"

    def __str__(self) -> str:
        """Return status as string."""
        return self.value


def validate_quantity(quantity, maximum: int = MAX_DRAW_QUANTITY) -> int:
    """
    Validate a requested key quantity.

    Args:
        quantity: Requested number of keys
        maximum: Largest accepted quantity

    Returns:
        The quantity as int

    Raises:
        InvalidQuantityError: If quantity is not an integer in [1, maximum]
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantityError(quantity, maximum)
    if quantity < 1 or quantity > maximum:
        raise InvalidQuantityError(quantity, maximum)
    return quantity
