# inventory_api/modules/dashboard/schemas.py
from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal
from datetime import datetime
from inventory_api.shared.database.models import SaleStatus
from inventory_api.shared.schemas.common import BaseResponse

class DashboardKPIs(BaseModel):
    total_sales: int
    pending_sales: int
    confirmed_sales: int
    cancelled_sales: int
    delivered_sales: int
    total_revenue: Decimal
    total_products: int
    total_customers: int
    critical_stock_products: int
    sales_growth: float
    revenue_growth: float

class RecentSale(BaseModel):
    id: int
    code: str
    customer: str
    total_value: Decimal
    status: SaleStatus
    sale_date: datetime

    class Config:
        from_attributes = True

class TopSellingProduct(BaseModel):
    product_id: int
    code: str
    title: str
    category: str
    quantity_sold: int
    revenue: Decimal
    sales_count: int = 0

class CriticalStockProduct(BaseModel):
    id: int
    code: str
    title: str
    quantity: int
    min_stock: int
    category: str

class CategorySales(BaseModel):
    category: str
    value: Decimal
    percentage: float

class MonthlyTrendPoint(BaseModel):
    month: str  # YYYY-MM
    sales: int
    revenue: Decimal

class DashboardResponse(BaseResponse):
    kpis: DashboardKPIs
    recent_sales: List[RecentSale]
    top_products: List[TopSellingProduct]
    critical_stock: List[CriticalStockProduct]
    sales_by_category: List[CategorySales]
    monthly_trend: List[MonthlyTrendPoint]
    critical_stock_threshold: int

class KPIsResponse(BaseModel):
    total_revenue: Decimal
    total_sales: int
    average_sale_value: Decimal
    top_products: List[TopSellingProduct]
    generated_at: Optional[datetime] = None
