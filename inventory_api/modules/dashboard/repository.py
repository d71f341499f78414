# inventory_api/modules/dashboard/repository.py
from sqlalchemy.orm import Session
from sqlalchemy import func, extract
from typing import Dict, Any, List, Optional
from datetime import date, datetime
import logging

from inventory_api.shared.database.models import (
    Category, Product, Sale, SaleItem, SaleStatus
)
from inventory_api.modules.sales.repository import to_money
from inventory_api.shared.services.stock_policies import critical_threshold_clause

logger = logging.getLogger(__name__)

class DashboardRepository:
    """Consultas de solo lectura para el dashboard"""

    def __init__(self, db: Session):
        self.db = db

    def get_current_date(self) -> date:
        """Fecha según el reloj de la base de datos, el mismo que fija sale_date"""
        return self.db.query(func.current_timestamp()).scalar().date()

    def count_by_status(self) -> Dict[SaleStatus, int]:
        rows = self.db.query(Sale.status, func.count(Sale.id)).group_by(Sale.status).all()
        counts = {status: 0 for status in SaleStatus}
        for status, count in rows:
            counts[SaleStatus(status)] = count
        return counts

    def get_revenue_summary(self) -> Dict[str, Any]:
        """Ingresos, cantidad y promedio de ventas no canceladas"""
        row = self.db.query(
            func.count(Sale.id).label('count'),
            func.coalesce(func.sum(Sale.total_value), 0).label('revenue'),
            func.avg(Sale.total_value).label('average')
        ).filter(Sale.status != SaleStatus.CANCELLED).one()

        return {
            "count": row.count,
            "revenue": to_money(row.revenue),
            "average": to_money(row.average)
        }

    def count_products(self) -> int:
        return self.db.query(func.count(Product.id)).scalar()

    def count_customers(self) -> int:
        return self.db.query(func.count(func.distinct(Sale.customer))).scalar()

    def get_recent_sales(self, limit: int = 5) -> List[Sale]:
        return self.db.query(Sale).order_by(
            Sale.sale_date.desc(), Sale.id.desc()
        ).limit(limit).all()

    def get_top_products(self, limit: int = 5) -> List[Dict[str, Any]]:
        """Productos más vendidos por cantidad, sin ventas canceladas"""
        quantity_sold = func.sum(SaleItem.quantity).label('quantity_sold')

        rows = self.db.query(
            Product.id.label('product_id'),
            Product.code,
            Product.title,
            func.coalesce(Category.name, 'Sin categoría').label('category'),
            quantity_sold,
            func.coalesce(func.sum(SaleItem.subtotal), 0).label('revenue'),
            func.count(func.distinct(SaleItem.sale_id)).label('sales_count')
        ).join(
            SaleItem, SaleItem.product_id == Product.id
        ).join(
            Sale, SaleItem.sale_id == Sale.id
        ).outerjoin(
            Category, Product.category_id == Category.id
        ).filter(
            Sale.status != SaleStatus.CANCELLED
        ).group_by(
            Product.id, Product.code, Product.title, Category.name
        ).order_by(
            quantity_sold.desc(), Product.id.asc()
        ).limit(limit).all()

        return [
            {
                "product_id": row.product_id,
                "code": row.code,
                "title": row.title,
                "category": row.category,
                "quantity_sold": int(row.quantity_sold or 0),
                "revenue": to_money(row.revenue),
                "sales_count": row.sales_count
            }
            for row in rows
        ]

    def get_critical_stock(self, threshold: Optional[int] = None, limit: int = 10) -> List[Dict[str, Any]]:
        rows = self.db.query(
            Product.id,
            Product.code,
            Product.title,
            Product.quantity,
            Product.min_stock,
            func.coalesce(Category.name, 'Sin categoría').label('category')
        ).outerjoin(
            Category, Product.category_id == Category.id
        ).filter(
            Product.is_active.is_(True),
            critical_threshold_clause(threshold)
        ).order_by(
            Product.quantity.asc(), Product.id.asc()
        ).limit(limit).all()

        return [dict(row._mapping) for row in rows]

    def count_critical_stock(self, threshold: Optional[int] = None) -> int:
        return self.db.query(func.count(Product.id)).filter(
            Product.is_active.is_(True),
            critical_threshold_clause(threshold)
        ).scalar()

    def get_sales_by_category(self) -> List[Dict[str, Any]]:
        """Ingresos por categoría (suma de subtotales, sin ventas canceladas)"""
        value = func.coalesce(func.sum(SaleItem.subtotal), 0).label('value')

        rows = self.db.query(
            func.coalesce(Category.name, 'Sin categoría').label('category'),
            value
        ).select_from(SaleItem).join(
            Sale, SaleItem.sale_id == Sale.id
        ).join(
            Product, SaleItem.product_id == Product.id
        ).outerjoin(
            Category, Product.category_id == Category.id
        ).filter(
            Sale.status != SaleStatus.CANCELLED
        ).group_by(
            Category.name
        ).order_by(value.desc()).all()

        return [{"category": row.category, "value": to_money(row.value)} for row in rows]

    def get_monthly_totals(self, since: datetime) -> Dict[str, Dict[str, Any]]:
        """
        Ventas y facturación agrupadas por año/mes desde `since`.

        Returns:
            Dict[str, Dict]: {"YYYY-MM": {"sales": int, "revenue": Decimal}}
        """
        year = extract('year', Sale.sale_date).label('year')
        month = extract('month', Sale.sale_date).label('month')

        rows = self.db.query(
            year,
            month,
            func.count(Sale.id).label('sales'),
            func.coalesce(func.sum(Sale.total_value), 0).label('revenue')
        ).filter(
            Sale.status != SaleStatus.CANCELLED,
            Sale.sale_date >= since
        ).group_by(year, month).all()

        return {
            f"{int(row.year):04d}-{int(row.month):02d}": {
                "sales": row.sales,
                "revenue": to_money(row.revenue)
            }
            for row in rows
        }
