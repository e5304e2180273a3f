"""
Key lifecycle commands.
"""

import uuid
from dataclasses import dataclass, field
from typing import List


@dataclass
class RevokeBatchCommand:
    """Command to revoke every live key of a generation batch."""

    principal_id: str
    batch_id: uuid.UUID


@dataclass
class RevokeKeyCommand:
    """Command to revoke a single key."""

    principal_id: str
    key_id: uuid.UUID


@dataclass
class RevokeKeysCommand:
    """Command to revoke several keys at once."""

    principal_id: str
    key_ids: List[uuid.UUID] = field(default_factory=list)


@dataclass
class MarkKeyConsumedCommand:
    """Command to mark a key as used."""

    principal_id: str
    key_id: uuid.UUID


@dataclass
class MarkKeyExpiredCommand:
    """Command to mark a key as expired."""

    principal_id: str
    key_id: uuid.UUID
