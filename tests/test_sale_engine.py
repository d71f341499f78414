"""Sale engine tests against a real session: create, cancel and status changes."""

from decimal import Decimal

import pytest

from inventory_api.core.exceptions import (
    AlreadyCancelled, CannotCancelDelivered, DuplicateCode, InsufficientStock,
    InvalidDiscount, InvalidStatusTransition, ProductInactive, ProductNotFound,
    SaleNotFound, ValidationError
)
from inventory_api.modules.dashboard.repository import DashboardRepository
from inventory_api.modules.sales.repository import SalesRepository
from inventory_api.shared.database.models import InventoryChange, Sale, SaleStatus
from inventory_api.shared.services.stock_policies import (
    is_below_reorder_threshold, is_critical_stock
)


def _sale(code, items, customer="Cliente", discount="0"):
    return {
        "code": code,
        "customer": customer,
        "discount": Decimal(discount),
        "items": [{"product_id": p.id, "quantity": q} for p, q in items],
    }


class TestCreateSale:

    def test_total_is_sum_of_subtotals_minus_discount(self, db, make_product):
        a = make_product("A", quantity=10, sale_price="12.50")
        b = make_product("B", quantity=5, sale_price="30.00")
        repo = SalesRepository(db)

        sale = repo.create_sale_atomic(_sale("S1", [(a, 2), (b, 3)], discount="5.00"))

        subtotals = sum(item.subtotal for item in sale.items)
        assert subtotals == Decimal("115.00")
        assert sale.total_value == subtotals - Decimal("5.00")
        assert sale.discount == Decimal("5.00")
        assert sale.status == SaleStatus.PENDING
        assert a.quantity == 8
        assert b.quantity == 2

    def test_unit_price_is_snapshot_of_sale_price(self, db, make_product):
        a = make_product("A", quantity=10, sale_price="20.00")
        repo = SalesRepository(db)
        sale = repo.create_sale_atomic(_sale("S1", [(a, 1)]))

        a.sale_price = Decimal("99.00")
        db.commit()

        reloaded = repo.get_by_id(sale.id)
        assert reloaded.items[0].unit_price == Decimal("20.00")
        assert reloaded.total_value == Decimal("20.00")

    def test_insufficient_stock_mutates_nothing(self, db, make_product):
        a = make_product("A", quantity=10)
        b = make_product("B", quantity=1)
        repo = SalesRepository(db)

        with pytest.raises(InsufficientStock) as exc:
            repo.create_sale_atomic(_sale("S1", [(a, 2), (b, 5)]))

        assert exc.value.status_code == 400
        assert exc.value.details["available"] == 1
        assert a.quantity == 10
        assert b.quantity == 1
        assert db.query(Sale).count() == 0
        assert db.query(InventoryChange).count() == 0

    def test_requested_quantity_accumulates_per_product(self, db, make_product):
        a = make_product("A", quantity=5)
        repo = SalesRepository(db)

        with pytest.raises(InsufficientStock) as exc:
            repo.create_sale_atomic(_sale("S1", [(a, 3), (a, 3)]))

        assert exc.value.details["requested"] == 6
        assert a.quantity == 5

    def test_repeated_lines_within_stock_are_accepted(self, db, make_product):
        a = make_product("A", quantity=5)
        sale = SalesRepository(db).create_sale_atomic(_sale("S1", [(a, 2), (a, 3)]))

        assert len(sale.items) == 2
        assert a.quantity == 0

    def test_scenario_quantity_above_stock(self, db, make_product):
        a = make_product("A", quantity=5, min_stock=2)

        with pytest.raises(InsufficientStock):
            SalesRepository(db).create_sale_atomic(_sale("S1", [(a, 6)]))

        assert a.quantity == 5

    def test_scenario_discount_larger_than_total(self, db, make_product):
        a = make_product("A", quantity=5, sale_price="50.00")

        with pytest.raises(InvalidDiscount):
            SalesRepository(db).create_sale_atomic(_sale("S1", [(a, 1)], discount="1000"))

        assert a.quantity == 5
        assert db.query(Sale).count() == 0

    def test_discount_equal_to_total_is_allowed(self, db, make_product):
        a = make_product("A", quantity=5, sale_price="50.00")
        sale = SalesRepository(db).create_sale_atomic(_sale("S1", [(a, 1)], discount="50.00"))
        assert sale.total_value == Decimal("0.00")

    def test_discount_below_a_cent_is_not_rounded(self, db, make_product):
        a = make_product("A", quantity=5, sale_price="50.00")

        with pytest.raises(InvalidDiscount):
            SalesRepository(db).create_sale_atomic(_sale("S1", [(a, 1)], discount="50.005"))

        assert a.quantity == 5
        assert db.query(Sale).count() == 0

    def test_total_beyond_money_column_is_rejected(self, db, make_product):
        a = make_product("A", quantity=5, sale_price="99999999.99")

        with pytest.raises(ValidationError):
            SalesRepository(db).create_sale_atomic(_sale("S1", [(a, 2)]))

        assert a.quantity == 5
        assert db.query(Sale).count() == 0

    def test_duplicate_code(self, db, make_product):
        a = make_product("A", quantity=5)
        repo = SalesRepository(db)
        repo.create_sale_atomic(_sale("S1", [(a, 1)]))

        with pytest.raises(DuplicateCode) as exc:
            repo.create_sale_atomic(_sale("S1", [(a, 1)]))

        assert exc.value.status_code == 400
        assert a.quantity == 4

    def test_unknown_product_is_a_bad_request(self, db, make_product):
        a = make_product("A", quantity=5)
        data = _sale("S1", [(a, 1)])
        data["items"].append({"product_id": 999, "quantity": 1})

        with pytest.raises(ProductNotFound) as exc:
            SalesRepository(db).create_sale_atomic(data)

        assert exc.value.status_code == 400
        assert a.quantity == 5

    def test_inactive_product_is_rejected(self, db, make_product):
        a = make_product("A", quantity=5, is_active=False)

        with pytest.raises(ProductInactive):
            SalesRepository(db).create_sale_atomic(_sale("S1", [(a, 1)]))

        assert a.quantity == 5

    def test_records_sale_movements(self, db, make_product, admin_user):
        a = make_product("A", quantity=5)
        sale = SalesRepository(db).create_sale_atomic(_sale("S1", [(a, 2)]), user_id=admin_user.id)

        movement = db.query(InventoryChange).filter_by(product_id=a.id).one()
        assert movement.change_type == "sale"
        assert movement.quantity_before == 5
        assert movement.quantity_after == 3
        assert movement.reference_id == sale.id
        assert movement.user_id == admin_user.id

    def test_low_stock_policies_diverge_after_sale(self, db, make_product):
        a = make_product("A", quantity=5, min_stock=2)
        SalesRepository(db).create_sale_atomic(_sale("S1", [(a, 3)]))

        assert a.quantity == 2
        assert not is_below_reorder_threshold(a.quantity, a.min_stock)
        assert is_critical_stock(a.quantity)

        critical_ids = [p["id"] for p in DashboardRepository(db).get_critical_stock()]
        assert a.id in critical_ids


class TestCancelSale:

    def test_round_trip_restores_every_product(self, db, make_product):
        a = make_product("A", quantity=7)
        b = make_product("B", quantity=3)
        repo = SalesRepository(db)
        sale = repo.create_sale_atomic(_sale("S1", [(a, 4), (b, 3), (a, 1)]))

        cancelled = repo.cancel_sale_atomic(sale.id)

        assert cancelled.status == SaleStatus.CANCELLED
        assert a.quantity == 7
        assert b.quantity == 3

    def test_second_cancel_fails_and_restores_once(self, db, make_product):
        a = make_product("A", quantity=5)
        repo = SalesRepository(db)
        sale = repo.create_sale_atomic(_sale("S1", [(a, 2)]))
        repo.cancel_sale_atomic(sale.id)

        with pytest.raises(AlreadyCancelled):
            repo.cancel_sale_atomic(sale.id)

        assert a.quantity == 5
        changes = db.query(InventoryChange).filter_by(change_type="sale_cancellation").count()
        assert changes == 1

    def test_delivered_sale_cannot_be_cancelled(self, db, make_product):
        a = make_product("A", quantity=5)
        repo = SalesRepository(db)
        sale = repo.create_sale_atomic(_sale("S1", [(a, 2)]))
        repo.update_status_atomic(sale.id, SaleStatus.CONFIRMED)
        repo.update_status_atomic(sale.id, SaleStatus.DELIVERED)

        with pytest.raises(CannotCancelDelivered):
            repo.cancel_sale_atomic(sale.id)

        assert a.quantity == 3
        assert repo.get_by_id(sale.id).status == SaleStatus.DELIVERED

    def test_restores_stock_of_inactive_product(self, db, make_product):
        a = make_product("A", quantity=5)
        repo = SalesRepository(db)
        sale = repo.create_sale_atomic(_sale("S1", [(a, 2)]))
        a.is_active = False
        db.commit()

        repo.cancel_sale_atomic(sale.id)

        assert a.quantity == 5

    def test_missing_sale(self, db):
        with pytest.raises(SaleNotFound) as exc:
            SalesRepository(db).cancel_sale_atomic(404)
        assert exc.value.status_code == 404


class TestUpdateStatus:

    def test_follows_transition_table(self, db, make_product):
        a = make_product("A", quantity=5)
        repo = SalesRepository(db)
        sale = repo.create_sale_atomic(_sale("S1", [(a, 1)]))

        assert repo.update_status_atomic(sale.id, SaleStatus.CONFIRMED).status == SaleStatus.CONFIRMED
        assert repo.update_status_atomic(sale.id, SaleStatus.DELIVERED).status == SaleStatus.DELIVERED
        assert a.quantity == 4

    def test_same_status_is_noop(self, db, make_product):
        a = make_product("A", quantity=5)
        repo = SalesRepository(db)
        sale = repo.create_sale_atomic(_sale("S1", [(a, 1)]))

        assert repo.update_status_atomic(sale.id, SaleStatus.PENDING).status == SaleStatus.PENDING

    def test_skipping_confirmation_is_rejected_in_strict_mode(self, db, make_product):
        a = make_product("A", quantity=5)
        repo = SalesRepository(db)
        sale = repo.create_sale_atomic(_sale("S1", [(a, 1)]))

        with pytest.raises(InvalidStatusTransition) as exc:
            repo.update_status_atomic(sale.id, SaleStatus.DELIVERED, strict=True)

        assert exc.value.details["allowed"] == ["CANCELLED", "CONFIRMED"]
        assert repo.get_by_id(sale.id).status == SaleStatus.PENDING

    def test_permissive_mode_applies_transition_outside_table(self, db, make_product):
        a = make_product("A", quantity=5)
        repo = SalesRepository(db)
        sale = repo.create_sale_atomic(_sale("S1", [(a, 1)]))

        updated = repo.update_status_atomic(sale.id, SaleStatus.DELIVERED, strict=False)

        assert updated.status == SaleStatus.DELIVERED
        assert a.quantity == 4

    def test_cancelled_target_restores_stock(self, db, make_product):
        a = make_product("A", quantity=5)
        repo = SalesRepository(db)
        sale = repo.create_sale_atomic(_sale("S1", [(a, 3)]))
        repo.update_status_atomic(sale.id, SaleStatus.CONFIRMED)

        updated = repo.update_status_atomic(sale.id, SaleStatus.CANCELLED)

        assert updated.status == SaleStatus.CANCELLED
        assert a.quantity == 5

    def test_cancelled_sale_is_never_reopened(self, db, make_product):
        a = make_product("A", quantity=5)
        repo = SalesRepository(db)
        sale = repo.create_sale_atomic(_sale("S1", [(a, 3)]))
        repo.cancel_sale_atomic(sale.id)

        for strict in (True, False):
            with pytest.raises(InvalidStatusTransition):
                repo.update_status_atomic(sale.id, SaleStatus.PENDING, strict=strict)

        assert a.quantity == 5

    def test_missing_sale(self, db):
        with pytest.raises(SaleNotFound):
            SalesRepository(db).update_status_atomic(404, SaleStatus.CONFIRMED)
