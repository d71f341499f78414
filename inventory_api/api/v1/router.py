# inventory_api/api/v1/router.py
from fastapi import APIRouter
from inventory_api.config.settings import settings
from inventory_api.api.v1.auth import router as auth_router
from inventory_api.modules.products import router as products_router
from inventory_api.modules.categories import router as categories_router
from inventory_api.modules.sales import router as sales_router
from inventory_api.modules.dashboard import router as dashboard_router

# Crear router principal de la API
api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(
    products_router,
    prefix="/products",
    tags=["Products"]
)

api_router.include_router(
    categories_router,
    prefix="/categories",
    tags=["Categories"]
)

api_router.include_router(
    sales_router,
    prefix="/sales",
    tags=["Sales"]
)

api_router.include_router(
    dashboard_router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

@api_router.get("")
async def api_root():
    """Índice de la API"""
    prefix = settings.api_prefix
    return {
        "message": settings.app_name,
        "version": settings.version,
        "status": "active",
        "docs": "/docs",
        "available_endpoints": {
            "authentication": f"{prefix}/auth",
            "products": f"{prefix}/products",
            "categories": f"{prefix}/categories",
            "sales": f"{prefix}/sales",
            "dashboard": f"{prefix}/dashboard"
        }
    }
