from datetime import datetime, timedelta, timezone

from wms.services.numbering import (
    generate_order_number,
    generate_pick_list_number,
    is_valid_order_number,
    is_valid_pick_list_number,
)


def test_order_number_format():
    number = generate_order_number(datetime(2024, 3, 9, 12, 0, tzinfo=timezone.utc))
    assert number.startswith("ORD-20240309-")
    assert is_valid_order_number(number)


def test_order_number_uses_utc_date():
    local = datetime(2024, 3, 10, 1, 30, tzinfo=timezone(timedelta(hours=5)))
    assert generate_order_number(local).startswith("ORD-20240309-")


def test_invalid_order_numbers():
    assert not is_valid_order_number("ORD-2024039-0001")
    assert not is_valid_order_number("PO-20240309-0001")
    assert not is_valid_order_number("ORD-20240309-12345")


def test_pick_list_number_format():
    number = generate_pick_list_number(datetime(2024, 3, 9, 23, 59, tzinfo=timezone.utc))
    assert number.startswith("PL-20240309-")
    assert is_valid_pick_list_number(number)
    assert not is_valid_order_number(number)
