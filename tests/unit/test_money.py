"""Unit tests for minor-unit money helpers."""

from decimal import Decimal

import pytest

from financial_exorcist.utils.money import to_display, to_minor_units


@pytest.mark.unit
class TestToMinorUnits:
    """Test conversion to integer cents."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("12.99", 1299),
            (" 5 ", 500),
            (12, 1200),
            (0.1, 10),
            (12.999, 1300),
            ("0.005", 1),
            (Decimal("150.50"), 15050),
        ],
    )
    def test_conversion(self, value, expected):
        assert to_minor_units(value) == expected

    @pytest.mark.parametrize("value", ["abc", "", "NaN", "inf", True, None, [1]])
    def test_invalid_values(self, value):
        with pytest.raises(ValueError):
            to_minor_units(value)


@pytest.mark.unit
class TestToDisplay:
    """Test display formatting."""

    def test_with_symbol(self):
        assert to_display(1299) == "$12.99"
        assert to_display(5) == "$0.05"

    def test_without_symbol(self):
        assert to_display(150050, include_symbol=False) == "1500.50"

    @pytest.mark.parametrize("value", [1.5, "100", False])
    def test_rejects_non_integers(self, value):
        with pytest.raises(ValueError):
            to_display(value)
