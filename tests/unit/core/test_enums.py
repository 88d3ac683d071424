# tests/unit/core/test_enums.py
import pytest

from storefront.core.enums import OrderStatus


@pytest.mark.parametrize("status,modifiable", [
    (OrderStatus.PENDING, True),
    (OrderStatus.PAID, True),
    (OrderStatus.SHIPPED, False),
    (OrderStatus.DELIVERED, False),
    (OrderStatus.CANCELLED, False),
])
def test_cancellation_only_before_dispatch(status, modifiable):
    assert status.is_modifiable is modifiable
    assert status.can_transition_to(OrderStatus.CANCELLED) is modifiable


def test_forward_transitions():
    assert OrderStatus.PENDING.can_transition_to(OrderStatus.PAID)
    assert OrderStatus.PAID.can_transition_to(OrderStatus.SHIPPED)
    assert OrderStatus.SHIPPED.can_transition_to(OrderStatus.DELIVERED)

    assert not OrderStatus.PENDING.can_transition_to(OrderStatus.SHIPPED)
    assert not OrderStatus.DELIVERED.can_transition_to(OrderStatus.SHIPPED)
    assert not OrderStatus.CANCELLED.can_transition_to(OrderStatus.PAID)
