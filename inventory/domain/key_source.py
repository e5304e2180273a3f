"""
Random key generation.
"""

import secrets
from typing import Optional

from core.config import get_engine_setting
from core.domain.exceptions import KeySourceConfigurationError
from inventory.ports.key_source import KeySource


class RandomKeySource(KeySource):
    """
    Cryptographically random keys drawn from a character alphabet.

    The configuration is checked once, when the source is built, so a bad
    ``KEY_CHARS``/``KEY_LENGTH`` surfaces at startup rather than as a
    malformed key later.
    """

    def __init__(self, chars: str, length: int):
        """
        Initialize the source.

        Args:
            chars: Alphabet to draw characters from
            length: Number of characters per key

        Raises:
            KeySourceConfigurationError: If alphabet or length is unusable
        """
        if not isinstance(chars, str) or not chars:
            raise KeySourceConfigurationError("KEY_CHARS must be a non-empty string")
        if any(ch.isspace() for ch in chars):
            raise KeySourceConfigurationError("KEY_CHARS must not contain whitespace")
        if len(set(chars)) < 2:
            raise KeySourceConfigurationError(
                "KEY_CHARS must contain at least two distinct characters"
            )
        if isinstance(length, bool) or not isinstance(length, int) or length <= 0:
            raise KeySourceConfigurationError(
                f"KEY_LENGTH must be a positive integer, got {length!r}"
            )
        if length > 255:
            raise KeySourceConfigurationError("KEY_LENGTH must not exceed 255")
        self.chars = chars
        self.length = length

    @classmethod
    def from_settings(
        cls, chars: Optional[str] = None, length: Optional[int] = None
    ) -> "RandomKeySource":
        """Build a source from ``KEY_CHARS``/``KEY_LENGTH`` settings."""
        return cls(
            chars=chars if chars is not None else get_engine_setting("KEY_CHARS"),
            length=length if length is not None else get_engine_setting("KEY_LENGTH"),
        )

    def generate(self) -> str:
        return "".join(secrets.choice(self.chars) for _ in range(self.length))
