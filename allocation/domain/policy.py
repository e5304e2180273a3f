"""
Allocation pricing and limits.
"""

from typing import Optional

from core.config import get_engine_setting
from core.domain.value_objects import MAX_DRAW_QUANTITY, validate_quantity


class AllocationPolicy:
    """Quantity limits and credit price of keys."""

    def __init__(
        self,
        credits_per_key: Optional[int] = None,
        max_quantity: int = MAX_DRAW_QUANTITY,
    ):
        if credits_per_key is None:
            credits_per_key = get_engine_setting("CREDITS_PER_KEY")
        if credits_per_key < 0:
            raise ValueError("Credits per key cannot be negative")
        if not 1 <= max_quantity <= MAX_DRAW_QUANTITY:
            raise ValueError(f"Max quantity must be between 1 and {MAX_DRAW_QUANTITY}")
        self.credits_per_key = credits_per_key
        self.max_quantity = max_quantity

    def validate_quantity(self, quantity) -> int:
        return validate_quantity(quantity, self.max_quantity)

    def cost_for(self, quantity: int) -> int:
        """Credits charged for ``quantity`` keys."""
        return quantity * self.credits_per_key
