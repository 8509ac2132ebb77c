import pytest

from wms.core.errors import InvalidTransitionError
from wms.services.status_machine import (
    can_transition_order,
    can_transition_shipping,
    ensure_order_transition,
    ensure_pick_list_transition,
    ensure_shipping_transition,
    is_terminal_order_status,
)


@pytest.mark.parametrize(
    "current,target",
    [
        ("pending", "processing"),
        ("pending", "cancelled"),
        ("processing", "completed"),
        ("processing", "cancelled"),
    ],
)
def test_allowed_order_transitions(current, target):
    assert can_transition_order(current, target)
    assert ensure_order_transition(current, target).value == target


@pytest.mark.parametrize(
    "current,target",
    [
        ("pending", "completed"),
        ("pending", "pending"),
        ("completed", "cancelled"),
        ("cancelled", "processing"),
    ],
)
def test_rejected_order_transitions(current, target):
    with pytest.raises(InvalidTransitionError) as exc:
        ensure_order_transition(current, target)
    assert exc.value.details == {"kind": "order status", "current": current, "target": target}


def test_shipping_progression():
    assert can_transition_shipping("pending", "in_transit")
    assert can_transition_shipping("in_transit", "delivered")
    assert can_transition_shipping("in_transit", "failed")
    assert not can_transition_shipping("delivered", "in_transit")


def test_pending_cannot_jump_to_delivered():
    with pytest.raises(InvalidTransitionError):
        ensure_shipping_transition("pending", "delivered")


def test_terminal_statuses():
    assert is_terminal_order_status("completed")
    assert is_terminal_order_status("cancelled")
    assert not is_terminal_order_status("processing")


def test_pick_list_progression():
    assert ensure_pick_list_transition("pending", "in_progress").value == "in_progress"
    assert ensure_pick_list_transition("in_progress", "completed").value == "completed"
    assert ensure_pick_list_transition("pending", "cancelled").value == "cancelled"
    for current, target in [("pending", "completed"), ("completed", "in_progress"), ("cancelled", "pending")]:
        with pytest.raises(InvalidTransitionError):
            ensure_pick_list_transition(current, target)
