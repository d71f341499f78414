# inventory_api/modules/products/__init__.py
"""
Módulo de Productos

- CRUD de productos con código único
- Ajuste de stock (ADD / SUBTRACT / SET) con aviso de stock mínimo
- Reporte de productos a reponer
- Historial de movimientos de inventario
"""

from .router import router
from .service import ProductsService
from .repository import ProductsRepository

__all__ = [
    "router",
    "ProductsService",
    "ProductsRepository"
]
