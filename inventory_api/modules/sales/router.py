# inventory_api/modules/sales/router.py
from typing import Optional
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session
from datetime import date

from inventory_api.config.database import get_db
from inventory_api.core.auth.dependencies import get_current_user
from inventory_api.shared.database.models import MAX_INT
from .service import SalesService
from .schemas import (
    SaleCreateRequest, SaleStatusUpdateRequest, SaleResponse, SaleDetail,
    SaleListResponse, SalesReportResponse
)

router = APIRouter()

@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
async def create_sale(
    sale_data: SaleCreateRequest,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Registrar venta

    **Incluye:**
    - Validación de stock por producto (todo o nada)
    - Precio unitario tomado del sale_price vigente
    - Descuento sobre el total (no puede dejarlo negativo)
    - Descuento automático de inventario
    - Estado inicial PENDING
    """
    service = SalesService(db)
    return await service.create_sale(sale_data, user_id=current_user.id)

@router.get("", response_model=SaleListResponse)
async def list_sales(
    search: Optional[str] = Query(None, description="Busca en código y cliente"),
    status: Optional[str] = Query(None, description="Filtrar por estado"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Listar ventas con filtros y paginación"""
    service = SalesService(db)
    return await service.list_sales(search, status, start_date, end_date, page, limit)

@router.get("/report", response_model=SalesReportResponse)
async def sales_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Reporte de ventas del período con ranking de productos"""
    service = SalesService(db)
    return await service.sales_report(start_date, end_date)

@router.get("/code/{code}", response_model=SaleDetail)
async def get_sale_by_code(
    code: str,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = SalesService(db)
    return await service.get_sale_by_code(code)

@router.get("/{sale_id}", response_model=SaleDetail)
async def get_sale(
    sale_id: int = Path(..., le=MAX_INT),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = SalesService(db)
    return await service.get_sale(sale_id)

@router.patch("/{sale_id}/status", response_model=SaleResponse)
async def update_sale_status(
    request: SaleStatusUpdateRequest,
    sale_id: int = Path(..., le=MAX_INT),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Cambiar estado de la venta

    **Transiciones permitidas:**
    - PENDING → CONFIRMED | CANCELLED
    - CONFIRMED → CANCELLED | DELIVERED

    CANCELLED restituye el stock igual que /cancel.
    """
    service = SalesService(db)
    return await service.update_status(sale_id, request.status, user_id=current_user.id)

@router.patch("/{sale_id}/cancel", response_model=SaleResponse)
async def cancel_sale(
    sale_id: int = Path(..., le=MAX_INT),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cancelar venta y restituir el stock de cada item"""
    service = SalesService(db)
    return await service.cancel_sale(sale_id, user_id=current_user.id)
