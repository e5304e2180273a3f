"""
Read-only queries over a principal's batches and keys.
"""

import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass
class ListBatchesQuery:
    """Query to list a principal's generation batches, newest first."""

    principal_id: str
    key_class: Optional[str] = None
    page: int = 1
    page_size: int = 20


@dataclass
class ListAssignedKeysQuery:
    """Query to list a principal's keys, newest first."""

    principal_id: str
    key_class: Optional[str] = None
    status: Optional[str] = None
    batch_id: Optional[uuid.UUID] = None
    page: int = 1
    page_size: int = 20


@dataclass
class GetAssignedKeyQuery:
    """Query to fetch one of the principal's keys."""

    principal_id: str
    key_id: uuid.UUID


@dataclass
class GetKeyStatsQuery:
    """Query for key counts by status and class."""

    principal_id: str
