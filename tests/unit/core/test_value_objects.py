"""
Unit tests for core value objects.
"""
import pytest

from core.domain.exceptions import (
    AllocationError,
    InvalidKeyClassError,
    InvalidKeyStatusError,
    InvalidPrincipalError,
    InvalidQuantityError,
)
from core.domain.value_objects import (
    MAX_DRAW_QUANTITY,
    KeyClass,
    KeyStatus,
    KeyValue,
    PrincipalId,
    validate_quantity,
)


class TestPrincipalId:
    """Tests for PrincipalId value object."""

    def test_valid_principal(self):
        """Test valid principal creation."""
        principal = PrincipalId("user-42")
        assert str(principal) == "user-42"

    def test_invalid_principal_empty(self):
        """Test invalid empty principal."""
        with pytest.raises(InvalidPrincipalError, match="cannot be empty"):
            PrincipalId("   ")

    def test_invalid_principal_too_long(self):
        """Test principal longer than 255 characters."""
        with pytest.raises(InvalidPrincipalError, match="too long"):
            PrincipalId("x" * 256)


class TestKeyValue:
    """Tests for KeyValue value object."""

    def test_valid_key(self):
        """Test valid key value."""
        assert str(KeyValue("ABCD-1234")) == "ABCD-1234"

    def test_equal_by_value(self):
        """Test value objects compare by value."""
        assert KeyValue("ABC") == KeyValue("ABC")
        assert hash(KeyValue("ABC")) == hash(KeyValue("ABC"))

    def test_invalid_key_empty(self):
        """Test invalid empty key."""
        with pytest.raises(ValueError):
            KeyValue("")

    def test_invalid_key_surrounding_whitespace(self):
        """Test key with padding."""
        with pytest.raises(ValueError, match="whitespace"):
            KeyValue(" ABC ")


class TestKeyClass:
    """Tests for KeyClass enum."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("day", KeyClass.EPHEMERAL_SHORT),
            ("WEEK", KeyClass.EPHEMERAL_MEDIUM),
            ("EPHEMERAL_LONG", KeyClass.EPHEMERAL_LONG),
            (" lifetime ", KeyClass.PERMANENT),
            (KeyClass.PERMANENT, KeyClass.PERMANENT),
        ],
    )
    def test_parse(self, raw, expected):
        """Test parsing by value, name and member."""
        assert KeyClass.parse(raw) is expected

    @pytest.mark.parametrize("raw", ["year", "", None, 3])
    def test_parse_invalid(self, raw):
        """Test unknown classes are rejected with a validation error."""
        with pytest.raises(InvalidKeyClassError) as exc_info:
            KeyClass.parse(raw)
        assert exc_info.value.code == "INVALID_KEY_CLASS"
        assert isinstance(exc_info.value, AllocationError)

    def test_label(self):
        """Test human readable labels."""
        assert KeyClass.EPHEMERAL_MEDIUM.label == "Week"
        assert KeyClass.PERMANENT.label == "Lifetime"


class TestKeyStatus:
    """Tests for KeyStatus enum."""

    def test_parse(self):
        """Test parsing status values."""
        assert KeyStatus.parse("Consumed") is KeyStatus.CONSUMED

    def test_parse_invalid(self):
        """Test unknown status."""
        with pytest.raises(InvalidKeyStatusError, match="Invalid key status"):
            KeyStatus.parse("lost")


class TestValidateQuantity:
    """Tests for quantity validation."""

    @pytest.mark.parametrize("quantity", [1, 50, MAX_DRAW_QUANTITY])
    def test_valid(self, quantity):
        """Test quantities inside the range."""
        assert validate_quantity(quantity) == quantity

    @pytest.mark.parametrize("quantity", [0, -1, MAX_DRAW_QUANTITY + 1, 2.0, "3", True, None])
    def test_invalid(self, quantity):
        """Test quantities outside the range or of the wrong type."""
        with pytest.raises(InvalidQuantityError) as exc_info:
            validate_quantity(quantity)
        assert exc_info.value.code == "INVALID_QUANTITY"
        assert exc_info.value.maximum == MAX_DRAW_QUANTITY

    def test_custom_maximum(self):
        """Test a lower maximum."""
        with pytest.raises(InvalidQuantityError):
            validate_quantity(11, maximum=10)
