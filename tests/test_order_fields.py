from datetime import datetime, timezone

import pytest

from app.services.order_fields import (
    CUSTOMER_NAME,
    ORDER_AMOUNT,
    AccessorChain,
    DataShapeError,
    coerce_order,
    parse_timestamp,
    to_number,
)


def test_amount_chain_follows_declared_precedence():
    assert ORDER_AMOUNT.resolve({"totalAmount": 10, "total": 20}) == (10, "totalAmount")
    assert ORDER_AMOUNT.resolve({"totalAmount": "n/a", "total": "1500"}) == (1500, "total")
    assert ORDER_AMOUNT.resolve({"grandTotal": 700, "finalAmount": 650}) == (700, "grandTotal")
    assert ORDER_AMOUNT.resolve({"finalAmount": 42}) == (42, "finalAmount")
    assert ORDER_AMOUNT.resolve({"items": [{"price": 1000, "quantity": 2}]}) == (2000, "items")
    assert ORDER_AMOUNT.resolve({"totalAmount": None}) == (0.0, "default")


def test_zero_total_is_a_value_not_a_missing_field():
    assert ORDER_AMOUNT.resolve({"totalAmount": 0, "items": [{"price": 5}]}) == (0, "totalAmount")


def test_item_sum_prefers_subtotal_and_defaults_quantity():
    document = {
        "items": [
            {"price": 100, "quantity": 3, "subtotal": 250},
            {"menuItem": {"price": 40}},
            "broken",
        ]
    }

    assert ORDER_AMOUNT(document) == 290


def test_customer_name_chain():
    assert CUSTOMER_NAME({"customer": {"name": "Ayu"}, "customerName": "ignored"}) == "Ayu"
    assert CUSTOMER_NAME({"customerDetails": {"name": "Table 4"}}) == "Table 4"
    assert CUSTOMER_NAME({"customerName": "Budi"}) == "Budi"
    assert CUSTOMER_NAME({"customer": {"firstName": "Sari", "lastName": "Dewi"}}) == "Sari Dewi"
    assert CUSTOMER_NAME({"customer": {"firstName": "Sari"}}) == "Sari"
    assert CUSTOMER_NAME({"user": {"name": "Rina"}}) == "Rina"
    assert CUSTOMER_NAME({"orderBy": "kiosk"}) == "kiosk"
    assert CUSTOMER_NAME({"customer": "walk-in"}) == "Unknown Customer"


def test_custom_chain_returns_default_label():
    chain = AccessorChain("note", (("note", lambda document: document.get("note")),), default="-")

    assert chain.resolve({}) == ("-", "default")
    assert chain({"note": "extra spicy"}) == "extra spicy"


@pytest.mark.parametrize("value", [True, None, "", "abc", float("nan"), float("inf"), [], {}])
def test_to_number_rejects_non_numeric(value):
    assert to_number(value) is None


def test_parse_timestamp_shapes():
    expected = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)

    assert parse_timestamp("2024-01-01T10:00:00Z") == expected
    assert parse_timestamp("2024-01-01T10:00") == expected
    assert parse_timestamp(datetime(2024, 1, 1, 10, 0)) == expected
    assert parse_timestamp(expected.timestamp()) == expected
    assert parse_timestamp({"seconds": int(expected.timestamp()), "nanoseconds": 0}) == expected
    assert parse_timestamp(None) is None


@pytest.mark.parametrize("value", ["tomorrow", {"nanoseconds": 5}, ["2024"]])
def test_parse_timestamp_rejects_unreadable_values(value):
    with pytest.raises(DataShapeError):
        parse_timestamp(value)


def test_coerce_order_applies_safe_defaults(caplog):
    order = coerce_order(
        {"status": 7, "createdAt": "??", "items": "two burgers", "totalAmount": "free"},
        fallback_id="row-3",
    )

    assert order.id == "row-3"
    assert order.status == "unknown"
    assert order.created_at is None
    assert order.items == []
    assert order.total_amount == 0
    assert order.amount_source == "default"
    assert order.customer_name == "Unknown Customer"
    assert "row-3" in caplog.text


def test_coerce_order_reads_full_document():
    order = coerce_order(
        {
            "id": "ord-1",
            "status": "pending_payment",
            "createdAt": "2024-02-10T08:15:00Z",
            "customer": {"name": "Ayu"},
            "paymentMethod": "QRIS",
            "items": [{"menuItemId": "m-1", "name": "Sate", "price": 25000, "quantity": 2, "subtotal": 50000}],
            "grandTotal": 55000,
        }
    )

    assert order.total_amount == 55000
    assert order.amount_source == "grandTotal"
    assert order.payment_status == "unpaid"
    assert order.payment_method == "QRIS"
    assert order.items[0].product_id == "m-1"
    assert order.items[0].subtotal == 50000


def test_explicit_payment_status_wins():
    order = coerce_order({"id": "x", "status": "processing", "paymentStatus": "refunded"})

    assert order.payment_status == "refunded"
