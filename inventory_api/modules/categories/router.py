# inventory_api/modules/categories/router.py
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from inventory_api.config.database import get_db
from inventory_api.core.auth.dependencies import get_current_user
from inventory_api.shared.database.models import MAX_INT
from .service import CategoriesService
from .schemas import (
    CategoryCreateRequest, CategoryUpdateRequest, CategoryResponse,
    CategoryWithProducts,
    CategoryDeleteResponse
)

router = APIRouter()

@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreateRequest,
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = CategoriesService(db)
    return await service.create_category(category_data)

@router.get("", response_model=None)
async def list_categories(
    include_inactive: bool = Query(False, description="Incluir categorías inactivas"),
    hierarchical: bool = Query(False, description="Devolver árbol desde las raíces"),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = CategoriesService(db)
    return await service.list_categories(include_inactive, hierarchical)

@router.get("/{category_id}", response_model=CategoryWithProducts)
async def get_category(
    category_id: int = Path(..., le=MAX_INT),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Categoría con padre, subcategorías y productos activos"""
    service = CategoriesService(db)
    return await service.get_category(category_id)

@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    update_data: CategoryUpdateRequest,
    category_id: int = Path(..., le=MAX_INT),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = CategoriesService(db)
    return await service.update_category(category_id, update_data)

@router.delete("/{category_id}", response_model=CategoryDeleteResponse)
async def delete_category(
    category_id: int = Path(..., le=MAX_INT),
    current_user = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Elimina la categoría, o la desactiva si tiene productos o subcategorías"""
    service = CategoriesService(db)
    return await service.delete_category(category_id)
