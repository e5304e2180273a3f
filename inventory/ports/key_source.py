"""
Key source port (interface).

A key source produces fresh key values for replenishing the pool.
"""
from abc import ABC, abstractmethod
from typing import List


class KeySource(ABC):
    """Abstract producer of candidate key values."""

    @abstractmethod
    def generate(self) -> str:
        """
        Produce one candidate key value.

        Values are not guaranteed unique; callers must deduplicate against
        the pool.
        """

    def generate_many(self, count: int) -> List[str]:
        """Produce ``count`` candidate values."""
        return [self.generate() for _ in range(count)]
