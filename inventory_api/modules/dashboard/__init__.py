# inventory_api/modules/dashboard/__init__.py
"""
Módulo de Dashboard - agregados de solo lectura sobre ventas e inventario
"""

from .router import router
from .service import DashboardService
from .repository import DashboardRepository

__all__ = [
    "router",
    "DashboardService",
    "DashboardRepository"
]
