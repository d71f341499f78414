# inventory_api/modules/dashboard/service.py
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
from datetime import date, datetime
from decimal import Decimal
import logging

from inventory_api.config.settings import settings
from inventory_api.shared.database.models import SaleStatus
from .repository import DashboardRepository
from .schemas import (
    DashboardKPIs, DashboardResponse, KPIsResponse, RecentSale,
    TopSellingProduct, CriticalStockProduct, CategorySales, MonthlyTrendPoint
)

logger = logging.getLogger(__name__)

def last_months(today: date, count: int) -> List[Tuple[int, int]]:
    """(año, mes) de los últimos `count` meses, el más antiguo primero, incluyendo el actual"""
    months = []
    year, month = today.year, today.month
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(months))

def growth_percentage(current, previous) -> float:
    """Variación porcentual; sin base previa es 100 si hubo actividad y 0 si no"""
    current, previous = Decimal(str(current)), Decimal(str(previous))
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round(float((current - previous) / previous * 100), 1)

class DashboardService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = DashboardRepository(db)

    async def get_dashboard(self, today: Optional[date] = None) -> DashboardResponse:
        """
        Panel completo.

        - KPIs por estado, facturación sin canceladas y crecimiento mensual
        - Últimas 5 ventas y 5 productos más vendidos
        - Productos en stock crítico (umbral fijo de configuración)
        - Participación por categoría y tendencia mensual real
        """
        logger.info("Cargando dashboard")
        today = today or self.repository.get_current_date()
        threshold = settings.critical_stock_threshold

        status_counts = self.repository.count_by_status()
        revenue = self.repository.get_revenue_summary()
        trend = self._monthly_trend(today, max(settings.dashboard_trend_months, 2))

        current, previous = trend[-1], trend[-2]
        kpis = DashboardKPIs(
            total_sales=sum(status_counts.values()),
            pending_sales=status_counts[SaleStatus.PENDING],
            confirmed_sales=status_counts[SaleStatus.CONFIRMED],
            cancelled_sales=status_counts[SaleStatus.CANCELLED],
            delivered_sales=status_counts[SaleStatus.DELIVERED],
            total_revenue=revenue["revenue"],
            total_products=self.repository.count_products(),
            total_customers=self.repository.count_customers(),
            critical_stock_products=self.repository.count_critical_stock(threshold),
            sales_growth=growth_percentage(current.sales, previous.sales),
            revenue_growth=growth_percentage(current.revenue, previous.revenue)
        )

        response = DashboardResponse(
            success=True,
            message="Dashboard cargado con éxito",
            kpis=kpis,
            recent_sales=[RecentSale.model_validate(s) for s in self.repository.get_recent_sales(5)],
            top_products=[TopSellingProduct(**p) for p in self.repository.get_top_products(5)],
            critical_stock=[CriticalStockProduct(**p) for p in self.repository.get_critical_stock(threshold, 10)],
            sales_by_category=self._category_shares(),
            monthly_trend=trend[-settings.dashboard_trend_months:] if settings.dashboard_trend_months > 0 else [],
            critical_stock_threshold=threshold
        )

        logger.info(f"Dashboard listo: {kpis.total_sales} ventas, {kpis.critical_stock_products} productos críticos")
        return response

    async def get_kpis(self) -> KPIsResponse:
        revenue = self.repository.get_revenue_summary()
        return KPIsResponse(
            total_revenue=revenue["revenue"],
            total_sales=revenue["count"],
            average_sale_value=revenue["average"],
            top_products=[TopSellingProduct(**p) for p in self.repository.get_top_products(5)],
            generated_at=datetime.now()
        )

    async def refresh(self) -> DashboardResponse:
        logger.info("Actualizando datos del dashboard")
        # Sin caché: se expiran las instancias de la sesión y se recalcula
        self.db.expire_all()
        return await self.get_dashboard()

    # MÉTODOS PRIVADOS HELPERS

    def _monthly_trend(self, today: date, months: int) -> List[MonthlyTrendPoint]:
        """Un punto por mes; los meses sin ventas quedan en cero"""
        buckets = last_months(today, months)
        first_year, first_month = buckets[0]
        totals = self.repository.get_monthly_totals(datetime(first_year, first_month, 1))

        trend = []
        for year, month in buckets:
            key = f"{year:04d}-{month:02d}"
            data = totals.get(key, {"sales": 0, "revenue": Decimal("0.00")})
            trend.append(MonthlyTrendPoint(month=key, sales=data["sales"], revenue=data["revenue"]))
        return trend

    def _category_shares(self) -> List[CategorySales]:
        rows = self.repository.get_sales_by_category()
        total = sum((row["value"] for row in rows), Decimal("0.00"))

        return [
            CategorySales(
                category=row["category"],
                value=row["value"],
                percentage=round(float(row["value"] / total * 100), 2) if total > 0 else 0.0
            )
            for row in rows
        ]
