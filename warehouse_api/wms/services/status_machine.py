"""
Order, shipping and pick list status transition tables.

Each progression is a directed graph with terminal states. Transitions are
validated here so every write path rejects illegal jumps (for example
pending -> delivered) the same way.
"""

from __future__ import annotations

from typing import Mapping, FrozenSet

from wms.core.constants import OrderStatus, PickListStatus, ShippingStatus
from wms.core.errors import InvalidTransitionError

ORDER_TRANSITIONS: Mapping[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

SHIPPING_TRANSITIONS: Mapping[ShippingStatus, FrozenSet[ShippingStatus]] = {
    ShippingStatus.PENDING: frozenset({ShippingStatus.IN_TRANSIT}),
    ShippingStatus.IN_TRANSIT: frozenset({ShippingStatus.DELIVERED, ShippingStatus.FAILED}),
    ShippingStatus.DELIVERED: frozenset(),
    ShippingStatus.FAILED: frozenset(),
}

PICK_LIST_TRANSITIONS: Mapping[PickListStatus, FrozenSet[PickListStatus]] = {
    PickListStatus.PENDING: frozenset({PickListStatus.IN_PROGRESS, PickListStatus.CANCELLED}),
    PickListStatus.IN_PROGRESS: frozenset({PickListStatus.COMPLETED, PickListStatus.CANCELLED}),
    PickListStatus.COMPLETED: frozenset(),
    PickListStatus.CANCELLED: frozenset(),
}


def can_transition_order(current: str, target: str) -> bool:
    return OrderStatus(target) in ORDER_TRANSITIONS[OrderStatus(current)]


def can_transition_shipping(current: str, target: str) -> bool:
    return ShippingStatus(target) in SHIPPING_TRANSITIONS[ShippingStatus(current)]


# PUBLIC_INTERFACE
def ensure_order_transition(current: str, target: str) -> OrderStatus:
    """Return the target status or raise InvalidTransitionError."""
    if not can_transition_order(current, target):
        raise InvalidTransitionError("order status", OrderStatus(current).value, OrderStatus(target).value)
    return OrderStatus(target)


# PUBLIC_INTERFACE
def ensure_shipping_transition(current: str, target: str) -> ShippingStatus:
    """Return the target shipping status or raise InvalidTransitionError."""
    if not can_transition_shipping(current, target):
        raise InvalidTransitionError(
            "shipping status", ShippingStatus(current).value, ShippingStatus(target).value
        )
    return ShippingStatus(target)


# PUBLIC_INTERFACE
def ensure_pick_list_transition(current: str, target: str) -> PickListStatus:
    """Return the target pick list status or raise InvalidTransitionError."""
    if PickListStatus(target) not in PICK_LIST_TRANSITIONS[PickListStatus(current)]:
        raise InvalidTransitionError(
            "pick list status", PickListStatus(current).value, PickListStatus(target).value
        )
    return PickListStatus(target)


def is_terminal_order_status(status: str) -> bool:
    return not ORDER_TRANSITIONS[OrderStatus(status)]
