"""
Allocation DTOs.

Handlers return these instead of domain entities. Pool internals (entry
ids, draw timestamps) never appear here.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


@dataclass
class AssignedKeyDTO:
    """DTO for an assigned key."""

    id: uuid.UUID
    value: str
    key_class: str
    status: str
    batch_id: uuid.UUID
    assigned_at: datetime
    consumed_at: Optional[datetime] = None


@dataclass
class GenerationBatchDTO:
    """DTO for a generation batch."""

    id: uuid.UUID
    key_class: str
    label: str
    size: int
    created_at: datetime


@dataclass
class AllocationResultDTO:
    """DTO for allocate response."""

    batch: GenerationBatchDTO
    keys: List[AssignedKeyDTO]
    credits_used: int
    replayed: bool = False


@dataclass
class RevocationResultDTO:
    """DTO for revocation responses."""

    revoked_count: int


@dataclass
class PageDTO(Generic[T]):
    """DTO for a page of results."""

    items: List[T]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


@dataclass
class KeyStatsDTO:
    """DTO for key statistics of a principal."""

    total: int
    by_status: Dict[str, int] = field(default_factory=dict)
    by_class: Dict[str, int] = field(default_factory=dict)
    balance: int = 0
    keys_generated: int = 0
