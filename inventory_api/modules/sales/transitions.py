# inventory_api/modules/sales/transitions.py
"""Tabla de transiciones de estado de una venta"""
from typing import Dict, FrozenSet

from inventory_api.core.exceptions import InvalidStatus
from inventory_api.shared.database.models import SaleStatus

ALLOWED_TRANSITIONS: Dict[SaleStatus, FrozenSet[SaleStatus]] = {
    SaleStatus.PENDING: frozenset({SaleStatus.CONFIRMED, SaleStatus.CANCELLED}),
    SaleStatus.CONFIRMED: frozenset({SaleStatus.CANCELLED, SaleStatus.DELIVERED}),
    SaleStatus.CANCELLED: frozenset(),
    SaleStatus.DELIVERED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


def parse_status(value) -> SaleStatus:
    """Convertir texto a SaleStatus (acepta minúsculas)"""
    if isinstance(value, SaleStatus):
        return value
    try:
        return SaleStatus(str(value).strip().upper())
    except ValueError:
        raise InvalidStatus(
            f"Estado inválido: '{value}'",
            details={"allowed": [s.value for s in SaleStatus]}
        )


def is_allowed(current: SaleStatus, target: SaleStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]
