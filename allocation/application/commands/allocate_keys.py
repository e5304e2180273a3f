"""
AllocateKeysCommand.

Command to turn credits into keys of one class.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class AllocateKeysCommand:
    """
    Command to allocate keys to a principal.

    ``idempotency_key`` makes retries safe: repeating the command returns
    the first batch. ``timeout_seconds`` bounds how long the allocation
    may take before it is abandoned without side effects.
    """

    principal_id: str
    key_class: str
    quantity: int
    idempotency_key: Optional[str] = None
    timeout_seconds: Optional[float] = None
