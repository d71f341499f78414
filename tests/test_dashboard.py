import asyncio
from datetime import date, datetime
from decimal import Decimal

from inventory_api.modules.dashboard.service import DashboardService, growth_percentage, last_months
from inventory_api.modules.sales.repository import SalesRepository
from inventory_api.shared.database.models import InventoryChange, Sale, SaleStatus


def _sell(db, code, product, quantity=1, customer="Cliente", status=None):
    repo = SalesRepository(db)
    sale = repo.create_sale_atomic({
        "code": code,
        "customer": customer,
        "items": [{"product_id": product.id, "quantity": quantity}],
    })
    if status is SaleStatus.CANCELLED:
        sale = repo.cancel_sale_atomic(sale.id)
    elif status is not None:
        sale = repo.update_status_atomic(sale.id, status)
    return sale


class TestHelpers:

    def test_last_months_crosses_year(self):
        assert last_months(date(2024, 2, 15), 4) == [(2023, 11), (2023, 12), (2024, 1), (2024, 2)]

    def test_growth_percentage(self):
        assert growth_percentage(150, 100) == 50.0
        assert growth_percentage(Decimal("50.00"), Decimal("200.00")) == -75.0
        assert growth_percentage(3, 0) == 100.0
        assert growth_percentage(0, 0) == 0.0


class TestDashboardEndpoint:

    def test_kpis_by_status(self, client, auth_headers, make_product, db):
        product = make_product("A", quantity=50, sale_price="10.00")
        _sell(db, "S1", product, customer="Ana")
        _sell(db, "S2", product, quantity=2, customer="Ana", status=SaleStatus.CONFIRMED)
        _sell(db, "S3", product, quantity=3, customer="Luis", status=SaleStatus.CANCELLED)

        body = client.get("/api/dashboard", headers=auth_headers).json()

        kpis = body["kpis"]
        assert kpis["total_sales"] == 3
        assert (kpis["pending_sales"], kpis["confirmed_sales"], kpis["cancelled_sales"]) == (1, 1, 1)
        assert kpis["delivered_sales"] == 0
        assert Decimal(str(kpis["total_revenue"])) == Decimal("30.00")
        assert kpis["total_customers"] == 2
        assert [s["code"] for s in body["recent_sales"]] == ["S3", "S2", "S1"]

    def test_top_products_exclude_cancelled(self, client, auth_headers, make_product, db):
        a = make_product("A", quantity=50)
        b = make_product("B", quantity=50)
        _sell(db, "S1", a, quantity=2)
        _sell(db, "S2", b, quantity=1)
        _sell(db, "S3", b, quantity=10, status=SaleStatus.CANCELLED)

        top = client.get("/api/dashboard", headers=auth_headers).json()["top_products"]

        assert [p["code"] for p in top] == ["A", "B"]
        assert top[0]["quantity_sold"] == 2
        assert top[0]["category"] == "Sin categoría"

    def test_critical_stock(self, client, auth_headers, make_product):
        make_product("EMPTY", quantity=0)
        make_product("LOW", quantity=9, min_stock=0)
        make_product("EDGE", quantity=10)
        make_product("OFF", quantity=0, is_active=False)

        body = client.get("/api/dashboard", headers=auth_headers).json()

        assert [p["code"] for p in body["critical_stock"]] == ["EMPTY", "LOW"]
        assert body["kpis"]["critical_stock_products"] == 2
        assert body["critical_stock_threshold"] == 10

    def test_category_shares(self, client, auth_headers, make_product, category, db):
        ring = make_product("RING", quantity=10, sale_price="30.00", category=category)
        loose = make_product("LOOSE", quantity=10, sale_price="10.00")
        _sell(db, "S1", ring)
        _sell(db, "S2", loose)

        shares = client.get("/api/dashboard", headers=auth_headers).json()["sales_by_category"]

        assert [(s["category"], s["percentage"]) for s in shares] == [("Rings", 75.0), ("Sin categoría", 25.0)]

    def test_empty_database(self, client, auth_headers):
        body = client.get("/api/dashboard", headers=auth_headers).json()

        assert body["kpis"]["total_sales"] == 0
        assert body["kpis"]["sales_growth"] == 0.0
        assert len(body["monthly_trend"]) == 5
        assert all(point["sales"] == 0 for point in body["monthly_trend"])

    def test_kpis_and_refresh(self, client, auth_headers, make_product, db):
        product = make_product("A", quantity=10, sale_price="20.00")
        _sell(db, "S1", product)
        _sell(db, "S2", product, quantity=2)

        kpis = client.get("/api/dashboard/kpis", headers=auth_headers).json()
        refreshed = client.post("/api/dashboard/refresh", headers=auth_headers)

        assert kpis["total_sales"] == 2
        assert Decimal(str(kpis["average_sale_value"])) == Decimal("30.00")
        assert refreshed.status_code == 200
        assert refreshed.json()["kpis"]["total_sales"] == 2

    def test_current_month_uses_the_sale_clock(self, client, auth_headers, make_product, db):
        product = make_product("A", quantity=10, sale_price="20.00")
        sale = _sell(db, "S1", product)

        trend = client.get("/api/dashboard", headers=auth_headers).json()["monthly_trend"]

        assert trend[-1]["month"] == sale.sale_date.strftime("%Y-%m")
        assert trend[-1]["sales"] == 1

        movement = db.query(InventoryChange).filter_by(reference_id=sale.id).one()
        assert movement.created_at.date() == sale.sale_date.date()

    def test_requires_token(self, client):
        assert client.get("/api/dashboard").status_code == 401


class TestMonthlyTrend:

    def _sale(self, db, code, when, total, status=SaleStatus.CONFIRMED):
        db.add(Sale(
            code=code,
            customer="Cliente",
            sale_date=when,
            discount=Decimal("0"),
            total_value=Decimal(total),
            status=status,
        ))
        db.commit()

    def test_buckets_and_growth(self, db):
        self._sale(db, "OLD", datetime(2024, 1, 20), "500.00")
        self._sale(db, "M1", datetime(2024, 4, 3), "100.00")
        self._sale(db, "M2", datetime(2024, 5, 10), "100.00")
        self._sale(db, "M3", datetime(2024, 5, 28), "50.00")
        self._sale(db, "GONE", datetime(2024, 5, 29), "999.00", status=SaleStatus.CANCELLED)

        dashboard = asyncio.run(DashboardService(db).get_dashboard(today=date(2024, 5, 31)))

        trend = [(p.month, p.sales, p.revenue) for p in dashboard.monthly_trend]
        assert trend == [
            ("2024-01", 1, Decimal("500.00")),
            ("2024-02", 0, Decimal("0.00")),
            ("2024-03", 0, Decimal("0.00")),
            ("2024-04", 1, Decimal("100.00")),
            ("2024-05", 2, Decimal("150.00")),
        ]
        assert dashboard.kpis.sales_growth == 100.0
        assert dashboard.kpis.revenue_growth == 50.0
