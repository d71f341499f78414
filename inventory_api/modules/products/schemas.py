# inventory_api/modules/products/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from decimal import Decimal
from datetime import datetime
from inventory_api.shared.database.models import MAX_INT, StockOperation
from inventory_api.shared.schemas.common import BaseResponse, CategoryRef, Pagination

class ProductCreateRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50, description="Código único del producto")
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    category_id: Optional[int] = Field(None, gt=0, le=MAX_INT)
    quantity: int = Field(0, ge=0, le=MAX_INT, description="Stock inicial")
    unit_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Precio de costo")
    sale_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, description="Precio de venta")
    min_stock: int = Field(0, ge=0, le=MAX_INT, description="Stock mínimo para reposición")

    @validator('code', 'title')
    def strip_not_empty(cls, v):
        if not v.strip():
            raise ValueError('No puede estar vacío')
        return v.strip()

class ProductUpdateRequest(BaseModel):
    """Actualización parcial: solo se aplican los campos enviados"""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    category_id: Optional[int] = Field(None, gt=0, le=MAX_INT)
    quantity: Optional[int] = Field(None, ge=0, le=MAX_INT)
    unit_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    sale_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    min_stock: Optional[int] = Field(None, ge=0, le=MAX_INT)
    is_active: Optional[bool] = None

class StockUpdateRequest(BaseModel):
    quantity: int = Field(..., ge=1, le=MAX_INT, description="Cantidad a sumar, restar o fijar")
    operation: StockOperation = Field(StockOperation.SET, description="ADD, SUBTRACT o SET")

class ProductDetail(BaseModel):
    id: int
    code: str
    title: str
    description: Optional[str] = None
    category_id: Optional[int] = None
    category: Optional[CategoryRef] = None
    quantity: int
    unit_price: Decimal
    sale_price: Decimal
    min_stock: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class RecentSaleLine(BaseModel):
    sale_id: int
    sale_code: str
    sale_date: datetime
    customer: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

class ProductWithSales(ProductDetail):
    recent_sales: List[RecentSaleLine] = []

class ProductResponse(BaseResponse):
    product: ProductDetail

class ProductListResponse(BaseModel):
    products: List[ProductDetail]
    pagination: Pagination

class ProductDeleteResponse(BaseResponse):
    deactivated: bool

class StockUpdateResponse(BaseResponse):
    product: ProductDetail
    warning: Optional[str] = None

class LowStockResponse(BaseResponse):
    products: List[ProductDetail]

class InventoryMovement(BaseModel):
    id: int
    change_type: str
    quantity_before: int
    quantity_after: int
    reference_id: Optional[int] = None
    user_id: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class MovementListResponse(BaseModel):
    product_id: int
    movements: List[InventoryMovement]
