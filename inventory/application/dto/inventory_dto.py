"""
Inventory DTOs.
"""
from dataclasses import dataclass
from typing import List


@dataclass
class PoolStatsDTO:
    """DTO for one pool partition."""

    key_class: str
    label: str
    total: int
    available: int
    drawn: int


@dataclass
class PoolOverviewDTO:
    """DTO for all partitions."""

    classes: List[PoolStatsDTO]
    total: int
    available: int
    drawn: int


@dataclass
class ReplenishResultDTO:
    """DTO for replenish/import results."""

    key_class: str
    added: int
    available: int
