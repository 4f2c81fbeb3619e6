"""Unit tests for domain value objects."""

from decimal import Decimal

import pytest

from marketplace.domain.exceptions import ValidationError
from marketplace.domain.model.value_objects import Address, Money, Quantity


# ── Money ────────────────────────────────────────────────────────────────────


class TestMoney:

    def test_creation(self):
        m = Money(Decimal("10.50"))
        assert m.amount == Decimal("10.50")
        assert m.currency == "USD"

    def test_of_factory_from_string(self):
        assert Money.of("25.99").amount == Decimal("25.99")

    def test_of_factory_rejects_garbage(self):
        with pytest.raises(ValidationError, match="Invalid money amount"):
            Money.of("ten")

    def test_zero_price_allowed(self):
        assert Money.of("0").amount == Decimal("0")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            Money(Decimal("-1"))

    def test_addition(self):
        assert Money.of("10") + Money.of("5.50") == Money.of("15.50")

    def test_multiplication_by_int(self):
        assert Money.of("7.50") * 3 == Money.of("22.50")

    def test_multiplication_by_float_rejected(self):
        with pytest.raises(TypeError):
            Money.of("7.50") * 1.5

    def test_currency_mismatch_rejected(self):
        with pytest.raises(ValidationError, match="Cannot combine"):
            Money(Decimal("10"), "USD") + Money(Decimal("5"), "EUR")

    def test_str_formatting(self):
        assert str(Money.of("15")) == "$15.00"
        assert str(Money.of("9.5")) == "$9.50"


# ── Quantity ─────────────────────────────────────────────────────────────────


class TestQuantity:

    def test_valid_quantity(self):
        assert Quantity(5).value == 5

    def test_zero_rejected(self):
        with pytest.raises(ValidationError, match="at least 1"):
            Quantity(0)

    def test_negative_rejected(self):
        with pytest.raises(ValidationError, match="at least 1"):
            Quantity(-3)

    def test_non_integer_rejected(self):
        with pytest.raises(ValidationError, match="must be an integer"):
            Quantity(2.5)

    def test_bool_rejected(self):
        with pytest.raises(ValidationError, match="must be an integer"):
            Quantity(True)


# ── Address ──────────────────────────────────────────────────────────────────


class TestAddress:

    def test_complete_for_shipping(self):
        address = Address(street="1 Main St", city="Springfield", zip_code="12345", country="US")
        assert address.is_complete_for_shipping

    def test_blank_field_is_incomplete(self):
        address = Address(street="1 Main St", city="  ", zip_code="12345", country="US")
        assert not address.is_complete_for_shipping

    def test_state_and_phone_are_optional(self):
        address = Address(street="a", city="b", zip_code="c", country="d")
        assert address.state is None
        assert address.is_complete_for_shipping

    def test_dict_conversion_keeps_all_fields(self):
        address = Address(street="a", city="b", state="s", zip_code="c", country="d", phone_number="p")
        assert Address.from_dict(address.to_dict()) == address
