# inventory_api/modules/sales/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional, Dict, Any
from decimal import Decimal
from datetime import datetime
from inventory_api.shared.database.models import MAX_INT, SaleStatus
from inventory_api.shared.schemas.common import BaseResponse, Pagination

class SaleItemCreate(BaseModel):
    product_id: int = Field(..., gt=0, le=MAX_INT, description="ID del producto")
    quantity: int = Field(..., gt=0, le=MAX_INT, description="Cantidad")

    # NO incluir precio - se toma el sale_price vigente del producto

class SaleCreateRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50, description="Código único de la venta")
    customer: str = Field(..., min_length=1, max_length=200, description="Cliente")
    items: List[SaleItemCreate] = Field(..., min_length=1, description="Items de la venta")
    discount: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2, description="Descuento sobre el total")

    @validator('code', 'customer')
    def strip_not_empty(cls, v):
        if not v.strip():
            raise ValueError('No puede estar vacío')
        return v.strip()

class SaleStatusUpdateRequest(BaseModel):
    # str libre: el valor se valida en el servicio para responder INVALID_STATUS
    status: str = Field(..., description="PENDING, CONFIRMED, CANCELLED o DELIVERED")

class ProductSummary(BaseModel):
    id: int
    code: str
    title: str

    class Config:
        from_attributes = True

class SaleItemResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    product: Optional[ProductSummary] = None

    class Config:
        from_attributes = True

class SaleDetail(BaseModel):
    id: int
    code: str
    customer: str
    sale_date: datetime
    discount: Decimal
    total_value: Decimal
    status: SaleStatus
    items: List[SaleItemResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class SaleResponse(BaseResponse):
    sale: SaleDetail

class SaleListResponse(BaseModel):
    sales: List[SaleDetail]
    pagination: Pagination

class StatusSummary(BaseModel):
    status: SaleStatus
    count: int
    total_value: Decimal

class TopProduct(BaseModel):
    product_id: int
    title: str
    quantity: int
    value: Decimal

class SalesReportResponse(BaseModel):
    period: Dict[str, Any]
    summary: Dict[str, Any]
    status_summary: List[StatusSummary]
    top_products: List[TopProduct]
    sales: List[SaleDetail]
