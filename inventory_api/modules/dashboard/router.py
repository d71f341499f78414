# inventory_api/modules/dashboard/router.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from inventory_api.config.database import get_db
from inventory_api.core.auth.dependencies import get_current_user
from .service import DashboardService
from .schemas import DashboardResponse, KPIsResponse

router = APIRouter()

@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Dashboard principal

    **Incluye:**
    - KPIs de ventas, facturación y crecimiento mes a mes
    - Ventas recientes y productos más vendidos
    - Productos en stock crítico
    - Ventas por categoría
    - Tendencia mensual
    """
    service = DashboardService(db)
    return await service.get_dashboard()

@router.get("/kpis", response_model=KPIsResponse)
async def get_kpis(
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = DashboardService(db)
    return await service.get_kpis()

@router.post("/refresh", response_model=DashboardResponse)
async def refresh_dashboard(
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = DashboardService(db)
    return await service.refresh()
