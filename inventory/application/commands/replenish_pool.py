"""
Pool administration commands.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ReplenishPoolCommand:
    """
    Command to add randomly generated keys to a partition.

    With ``count`` set, exactly that many keys are generated; without it
    the partition is only topped up if it sits below its low watermark.
    """

    key_class: str
    count: Optional[int] = None


@dataclass
class AddPoolEntriesCommand:
    """Command to import externally supplied key values."""

    key_class: str
    values: List[str] = field(default_factory=list)
    skip_duplicates: bool = False
