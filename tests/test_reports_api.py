from datetime import date, timezone

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from app.api import dependencies
from app.main import app
from app.security.guards import in_flight, single_flight
from app.services.chart_presenter import ChartJsPresenter
from app.services.report_aggregator import ReportAggregator
from tests.fakes import FakeOrderStore, auth_headers


@pytest.fixture(name="store")
def store_fixture():
    return FakeOrderStore(
        [
            {"id": "a", "createdAt": "2024-01-01T10:00", "status": "completed", "totalAmount": 50000,
             "customer": {"name": "Ayu"}, "items": [{"name": "Sate", "price": 25000, "quantity": 2}]},
            {"id": "b", "createdAt": "2024-01-02T20:00", "status": "completed", "totalAmount": 30000,
             "customerName": "Budi"},
            {"id": "p", "createdAt": "2024-01-02T12:00", "status": "pending", "totalAmount": 99999,
             "paymentMethod": "QRIS"},
            {"id": "prev", "createdAt": "2023-12-31T12:00", "status": "delivered", "grandTotal": 64000},
        ]
    )


@pytest.fixture(name="api_client")
def client_fixture(store: FakeOrderStore):
    async def override_store():
        return store

    async def override_aggregator():
        return ReportAggregator(store, ChartJsPresenter(), timezone.utc)

    async def override_today():
        return date(2024, 1, 2)

    app.dependency_overrides[dependencies.get_order_store] = override_store
    app.dependency_overrides[dependencies.get_report_aggregator] = override_aggregator
    app.dependency_overrides[dependencies.get_today] = override_today

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def test_requests_without_session_are_rejected(api_client: TestClient) -> None:
    assert api_client.get("/api/reports/revenue").status_code == 401
    response = api_client.get("/api/reports/revenue", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_revenue_report(api_client: TestClient) -> None:
    response = api_client.get(
        "/api/reports/revenue",
        params={"start_date": "2024-01-01", "end_date": "2024-01-02"},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["start_date"] == "2024-01-01"
    assert body["totals"]["total_revenue"] == 80000
    assert body["previous_revenue"] == 64000
    assert body["percent_change"] == 25.0
    assert [product["name"] for product in body["top_products"]] == ["Sate"]
    assert body["error"] is None


def test_revenue_report_defaults_window_to_range_days(api_client: TestClient, store: FakeOrderStore) -> None:
    response = api_client.get("/api/reports/revenue", params={"range_days": 1}, headers=auth_headers())

    assert response.status_code == 200
    assert response.json()["start_date"] == "2024-01-01"
    assert response.json()["end_date"] == "2024-01-02"


def test_revenue_report_shows_banner_when_store_fails(api_client: TestClient, store: FakeOrderStore) -> None:
    store.fail_on_call = 1

    response = api_client.get("/api/reports/revenue", params={"range_days": 1}, headers=auth_headers())

    assert response.status_code == 200
    body = response.json()
    assert body["error"]
    assert body["totals"]["total_revenue"] == 0
    assert [bucket["revenue"] for bucket in body["daily"]] == [0, 0]


@pytest.mark.parametrize(
    "params",
    [
        {"start_date": "2024-13-01"},
        {"start_date": "2024-01-01garbage"},
        {"start_date": "2024-01-05", "end_date": "2024-01-01"},
    ],
)
def test_invalid_window_is_rejected(api_client: TestClient, params) -> None:
    response = api_client.get("/api/reports/revenue", params=params, headers=auth_headers())

    assert response.status_code == 422


def test_revenue_export_returns_csv(api_client: TestClient) -> None:
    response = api_client.get(
        "/api/reports/revenue/export",
        params={"start_date": "2024-01-01", "end_date": "2024-01-02"},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "revenue-report-2024-01-01-to-2024-01-02.csv" in response.headers["content-disposition"]
    assert response.text.split("\n") == [
        '"Date","Order ID","Customer","Item Count","Amount","Status"',
        '"2024-01-02","b","Budi","0","30000","completed"',
        '"2024-01-01","a","Ayu","1","50000","completed"',
    ]


def test_revenue_export_fails_with_503_when_store_fails(api_client: TestClient, store: FakeOrderStore) -> None:
    store.fail_on_call = 1

    response = api_client.get("/api/reports/revenue/export", headers=auth_headers())

    assert response.status_code == 503


def test_dashboard_order_time(api_client: TestClient) -> None:
    response = api_client.get("/api/dashboard/order-time", headers=auth_headers())

    assert response.status_code == 200
    distribution = response.json()["distribution"]
    assert (distribution["morning"], distribution["afternoon"], distribution["evening"]) == (1, 1, 1)


def test_list_orders_counts_before_filtering(api_client: TestClient) -> None:
    response = api_client.get(
        "/api/orders",
        params={"start_date": "2024-01-01", "status": "pending"},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    body = response.json()
    assert [order["id"] for order in body["orders"]] == ["p"]
    assert body["orders"][0]["payment_method"] == "QRIS"
    assert body["counts"] == {"all": 3, "pending": 1, "processing": 0, "completed": 2, "cancelled": 0}


def test_list_orders_reports_store_failure(api_client: TestClient, store: FakeOrderStore) -> None:
    store.fail_on_call = 1

    response = api_client.get("/api/orders", headers=auth_headers())

    assert response.status_code == 200
    assert response.json()["orders"] == []
    assert response.json()["error"]


def test_update_order_status(api_client: TestClient, store: FakeOrderStore) -> None:
    response = api_client.patch("/api/orders/p/status", json={"status": "processing"}, headers=auth_headers())

    assert response.status_code == 200
    assert response.json() == {
        "id": "p",
        "previous_status": "pending",
        "status": "processing",
        "payment_status": "processing",
    }
    assert store.updates == [{"id": "p", "status": "processing"}]


def test_update_order_status_errors(api_client: TestClient) -> None:
    headers = auth_headers()

    assert api_client.patch("/api/orders/a/status", json={"status": "cancelled"}, headers=headers).status_code == 409
    assert api_client.patch("/api/orders/zzz/status", json={"status": "cancelled"}, headers=headers).status_code == 404
    assert api_client.patch("/api/orders/p/status", json={"status": "shipped"}, headers=headers).status_code == 422


def test_refresh_while_in_flight_is_refused(api_client: TestClient) -> None:
    with single_flight("revenue-report", "staff-1"):
        assert in_flight("revenue-report", "staff-1")
        busy = api_client.get("/api/reports/revenue", headers=auth_headers("staff-1"))
        other_user = api_client.get("/api/reports/revenue", headers=auth_headers("staff-2"))

    assert busy.status_code == 409
    assert other_user.status_code == 200
    assert not in_flight("revenue-report", "staff-1")


def test_single_flight_rejects_nested_trigger() -> None:
    with single_flight("order-stats", "staff-9"):
        with pytest.raises(HTTPException) as excinfo:
            with single_flight("order-stats", "staff-9"):
                pass
        assert excinfo.value.status_code == 409
        assert in_flight("order-stats", "staff-9")
    assert not in_flight("order-stats", "staff-9")


def test_update_order_status_conflicts_when_order_changed_meanwhile(
    api_client: TestClient, store: FakeOrderStore, monkeypatch
) -> None:
    async def no_matching_row(order_id, status, updated_at, *, expected_status):
        return None

    monkeypatch.setattr(store, "update_status", no_matching_row)

    response = api_client.patch("/api/orders/p/status", json={"status": "processing"}, headers=auth_headers())

    assert response.status_code == 409
    assert "no longer 'pending'" in response.json()["detail"]
