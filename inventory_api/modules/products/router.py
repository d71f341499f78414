# inventory_api/modules/products/router.py
from typing import Optional
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from inventory_api.config.database import get_db
from inventory_api.core.auth.dependencies import get_current_user
from inventory_api.shared.database.models import MAX_INT
from .service import ProductsService
from .schemas import (
    ProductCreateRequest, ProductUpdateRequest, StockUpdateRequest,
    ProductDetail, ProductWithSales, ProductResponse, ProductListResponse,
    ProductDeleteResponse, StockUpdateResponse, LowStockResponse,
    MovementListResponse
)

router = APIRouter()

@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreateRequest,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Crear producto (código único, categoría existente)"""
    service = ProductsService(db)
    return await service.create_product(product_data)

@router.get("", response_model=ProductListResponse)
async def list_products(
    search: Optional[str] = Query(None, description="Busca en código y título"),
    category_id: Optional[int] = Query(None, le=MAX_INT),
    is_active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = ProductsService(db)
    return await service.list_products(search, category_id, is_active, page, limit)

@router.get("/low-stock", response_model=LowStockResponse)
async def get_low_stock_products(
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Productos activos que necesitan reposición

    Criterio: quantity == 0 o quantity < min_stock
    """
    service = ProductsService(db)
    return await service.get_low_stock()

@router.get("/code/{code}", response_model=ProductDetail)
async def get_product_by_code(
    code: str,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = ProductsService(db)
    return await service.get_product_by_code(code)

@router.get("/{product_id}", response_model=ProductWithSales)
async def get_product(
    product_id: int = Path(..., le=MAX_INT),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = ProductsService(db)
    return await service.get_product(product_id)

@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    update_data: ProductUpdateRequest,
    product_id: int = Path(..., le=MAX_INT),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Actualización parcial; un cambio de quantity queda en el historial de movimientos"""
    service = ProductsService(db)
    return await service.update_product(product_id, update_data, user_id=current_user.id)

@router.delete("/{product_id}", response_model=ProductDeleteResponse)
async def delete_product(
    product_id: int = Path(..., le=MAX_INT),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Elimina el producto, o lo desactiva si tiene historial de ventas"""
    service = ProductsService(db)
    return await service.delete_product(product_id)

@router.patch("/{product_id}/stock", response_model=StockUpdateResponse)
async def update_stock(
    request: StockUpdateRequest,
    product_id: int = Path(..., le=MAX_INT),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Ajustar stock

    **Operaciones:**
    - ADD: suma quantity
    - SUBTRACT: resta quantity (no puede quedar negativo)
    - SET: fija quantity (por defecto)
    """
    service = ProductsService(db)
    return await service.update_stock(product_id, request, user_id=current_user.id)

@router.get("/{product_id}/movements", response_model=MovementListResponse)
async def get_product_movements(
    product_id: int = Path(..., le=MAX_INT),
    limit: int = Query(50, ge=1, le=500),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Historial de movimientos de stock, más recientes primero"""
    service = ProductsService(db)
    return await service.get_movements(product_id, limit)
