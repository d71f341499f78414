# inventory_api/modules/categories/__init__.py
"""
Módulo de Categorías - árbol padre/hijos del catálogo
"""

from .router import router
from .service import CategoriesService
from .repository import CategoriesRepository

__all__ = [
    "router",
    "CategoriesService",
    "CategoriesRepository"
]
