from datetime import date, timedelta, timezone

from app.services.order_fields import coerce_order
from app.services.report_export import export_filename, orders_to_csv


def test_orders_to_csv_quotes_every_field_without_trailing_newline():
    orders = [
        coerce_order(
            {
                "id": "ord-1",
                "createdAt": "2024-01-01T10:00:00Z",
                "customer": {"name": 'Ayu "Kitchen" Dewi'},
                "items": [{"name": "Sate", "price": 1000, "quantity": 2}, {"name": "Teh"}],
                "totalAmount": 50000,
                "status": "completed",
            }
        ),
        coerce_order({"id": "ord-2", "total": 12.5, "status": "delivered"}),
    ]

    content = orders_to_csv(orders, timezone.utc)
    lines = content.split("\n")

    assert lines == [
        '"Date","Order ID","Customer","Item Count","Amount","Status"',
        '"2024-01-01","ord-1","Ayu ""Kitchen"" Dewi","2","50000","completed"',
        '"","ord-2","Unknown Customer","0","12.50","delivered"',
    ]
    assert not content.endswith("\n")


def test_orders_to_csv_uses_store_local_date():
    orders = [coerce_order({"id": "late", "createdAt": "2024-01-01T20:00:00Z", "totalAmount": 1})]

    content = orders_to_csv(orders, timezone(timedelta(hours=7)))

    assert content.split("\n")[1].startswith('"2024-01-02"')


def test_orders_to_csv_with_no_orders_is_header_only():
    assert orders_to_csv([], timezone.utc) == '"Date","Order ID","Customer","Item Count","Amount","Status"'


def test_export_filename():
    assert export_filename(date(2024, 1, 1), date(2024, 1, 31)) == "revenue-report-2024-01-01-to-2024-01-31.csv"


def test_orders_to_csv_neutralizes_formula_cells():
    orders = [
        coerce_order(
            {
                "id": "@SUM(A1:A9)",
                "customerName": '=HYPERLINK("http://evil.example","x")',
                "status": "-cancelled",
                "totalAmount": 500,
            }
        ),
        coerce_order({"id": "ord-3", "customerName": "+62 812", "status": "completed", "totalAmount": 10}),
    ]

    lines = orders_to_csv(orders, timezone.utc).split("\n")

    assert lines[1] == '"","\'@SUM(A1:A9)","\'=HYPERLINK(""http://evil.example"",""x"")","0","500","\'-cancelled"'
    assert lines[2] == '"","ord-3","\'+62 812","0","10","completed"'
