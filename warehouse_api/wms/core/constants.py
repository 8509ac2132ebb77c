from __future__ import annotations

from enum import Enum


class OrderType(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ShippingStatus(str, Enum):
    PENDING = "pending"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    FAILED = "failed"


class RotationMethod(str, Enum):
    FIFO = "FIFO"
    LIFO = "LIFO"
    FEFO = "FEFO"


class AdjustmentType(str, Enum):
    ADD = "add"
    REMOVE = "remove"


class CreditStatus(str, Enum):
    OK = "ok"
    NEAR_LIMIT = "near_limit"
    EXCEEDS_LIMIT = "exceeds_limit"


class PickListStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PickItemStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PICKED = "picked"


class CommunicationType(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    MEETING = "meeting"
    OTHER = "other"


class CommunicationStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ORDER_NUMBER_PREFIX = "ORD"
ORDER_NUMBER_PATTERN = r"^ORD-\d{8}-\d{4}$"
PICK_LIST_NUMBER_PREFIX = "PL"
PICK_LIST_NUMBER_PATTERN = r"^PL-\d{8}-\d{4}$"

# Statuses that still accept inbound location assignment
RECEIVABLE_ORDER_STATUSES = (OrderStatus.PENDING, OrderStatus.PROCESSING)
