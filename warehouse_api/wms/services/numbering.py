from __future__ import annotations

import random
import re
from datetime import datetime, timezone
from typing import Optional

from wms.core.constants import (
    ORDER_NUMBER_PATTERN,
    ORDER_NUMBER_PREFIX,
    PICK_LIST_NUMBER_PATTERN,
    PICK_LIST_NUMBER_PREFIX,
)
from wms.db.base import utcnow

_ORDER_NUMBER_RE = re.compile(ORDER_NUMBER_PATTERN)
_PICK_LIST_NUMBER_RE = re.compile(PICK_LIST_NUMBER_PATTERN)
_rng = random.SystemRandom()


def _dated_number(prefix: str, now: Optional[datetime]) -> str:
    moment = now or utcnow()
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return f"{prefix}-{moment:%Y%m%d}-{_rng.randint(0, 9999):04d}"


# PUBLIC_INTERFACE
def generate_order_number(now: Optional[datetime] = None) -> str:
    """
    Build an order number of the form ORD-YYYYMMDD-NNNN.

    The date part is the UTC calendar date of `now` (defaults to the current time);
    NNNN is a zero-padded random number. Uniqueness is enforced by the database and
    the caller regenerates on collision.
    """
    return _dated_number(ORDER_NUMBER_PREFIX, now)


# PUBLIC_INTERFACE
def generate_pick_list_number(now: Optional[datetime] = None) -> str:
    """Pick list number PL-YYYYMMDD-NNNN, built the same way as order numbers."""
    return _dated_number(PICK_LIST_NUMBER_PREFIX, now)


def is_valid_order_number(value: str) -> bool:
    return bool(_ORDER_NUMBER_RE.match(value))


def is_valid_pick_list_number(value: str) -> bool:
    return bool(_PICK_LIST_NUMBER_RE.match(value))
