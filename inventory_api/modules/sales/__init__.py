# inventory_api/modules/sales/__init__.py
"""
Módulo de Ventas - Motor de ventas

Este módulo maneja el ciclo completo de una venta:
- Registro con validación de stock y descuento de inventario
- Cancelación con restitución de stock
- Cambios de estado según tabla de transiciones
- Listado, consulta y reporte

Arquitectura:
- router.py: Endpoints de ventas
- service.py: Orquestación y respuestas
- repository.py: Transacciones atómicas y consultas
- transitions.py: Tabla de estados
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import SalesService
from .repository import SalesRepository

__all__ = [
    "router",
    "SalesService",
    "SalesRepository"
]
