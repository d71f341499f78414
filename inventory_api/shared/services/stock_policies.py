# inventory_api/shared/services/stock_policies.py
"""
Políticas de stock bajo.

Conviven dos criterios distintos y no se unifican:
- reorder: quantity == 0 o quantity < min_stock (reporte de productos)
- critical: quantity == 0 o quantity < umbral fijo (lista del dashboard)
"""
from sqlalchemy import or_

from inventory_api.config.settings import settings
from inventory_api.shared.database.models import Product


def is_below_reorder_threshold(quantity: int, min_stock: int) -> bool:
    return quantity == 0 or quantity < min_stock


def is_critical_stock(quantity: int, threshold: int = None) -> bool:
    threshold = settings.critical_stock_threshold if threshold is None else threshold
    return quantity == 0 or quantity < threshold


def is_at_or_below_minimum(quantity: int, min_stock: int) -> bool:
    """Criterio del aviso devuelto al ajustar stock manualmente"""
    return quantity <= min_stock


def reorder_threshold_clause():
    return or_(Product.quantity == 0, Product.quantity < Product.min_stock)


def critical_threshold_clause(threshold: int = None):
    threshold = settings.critical_stock_threshold if threshold is None else threshold
    return or_(Product.quantity == 0, Product.quantity < threshold)
