import pytest

from inventory_api.core.exceptions import InvalidStatus
from inventory_api.modules.sales.transitions import (
    ALLOWED_TRANSITIONS, TERMINAL_STATUSES, is_allowed, parse_status
)
from inventory_api.shared.database.models import SaleStatus


class TestTransitionTable:

    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(SaleStatus)

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {SaleStatus.CANCELLED, SaleStatus.DELIVERED}

    @pytest.mark.parametrize("current,target", [
        (SaleStatus.PENDING, SaleStatus.CONFIRMED),
        (SaleStatus.PENDING, SaleStatus.CANCELLED),
        (SaleStatus.CONFIRMED, SaleStatus.CANCELLED),
        (SaleStatus.CONFIRMED, SaleStatus.DELIVERED),
    ])
    def test_allowed(self, current, target):
        assert is_allowed(current, target)

    @pytest.mark.parametrize("current,target", [
        (SaleStatus.PENDING, SaleStatus.DELIVERED),
        (SaleStatus.CONFIRMED, SaleStatus.PENDING),
        (SaleStatus.CANCELLED, SaleStatus.PENDING),
        (SaleStatus.DELIVERED, SaleStatus.CANCELLED),
    ])
    def test_rejected(self, current, target):
        assert not is_allowed(current, target)


class TestParseStatus:

    def test_accepts_any_case(self):
        assert parse_status("confirmed") == SaleStatus.CONFIRMED
        assert parse_status(" Delivered ") == SaleStatus.DELIVERED

    def test_passes_enum_through(self):
        assert parse_status(SaleStatus.PENDING) is SaleStatus.PENDING

    def test_unknown_value(self):
        with pytest.raises(InvalidStatus) as exc:
            parse_status("SHIPPED")
        assert exc.value.status_code == 400
        assert exc.value.error_code == "INVALID_STATUS"
        assert "PENDING" in exc.value.details["allowed"]
