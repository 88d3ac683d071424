# tests/unit/core/test_utils.py
from decimal import Decimal

import pytest

from storefront.core.utils import to_money


def test_to_money_rounds_half_up():
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(3) == Decimal("3.00")
    assert to_money(None) == Decimal("0.00")


def test_to_money_rejects_float():
    with pytest.raises(TypeError):
        to_money(0.1)
