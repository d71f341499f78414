# inventory_api/modules/categories/service.py
from sqlalchemy.orm import Session
from typing import Dict, List, Optional, Union
import logging

from inventory_api.core.exceptions import CategoryNotFound, InvalidCategoryParent
from inventory_api.shared.database.models import Category
from inventory_api.shared.schemas.common import CategoryRef
from .repository import CategoriesRepository
from .schemas import (
    CategoryCreateRequest, CategoryUpdateRequest, CategoryDetail,
    CategoryWithProducts, CategoryProduct, CategoryItem, CategoryNode,
    CategoryResponse, CategoryListResponse, CategoryTreeResponse,
    CategoryDeleteResponse
)

logger = logging.getLogger(__name__)

class CategoriesService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = CategoriesRepository(db)

    async def create_category(self, category_data: CategoryCreateRequest) -> CategoryResponse:
        if category_data.parent_id is not None:
            self._ensure_parent(category_data.parent_id)

        category = self.repository.create(category_data.dict())
        return CategoryResponse(
            success=True,
            message="Categoría creada con éxito",
            category=CategoryDetail.model_validate(category)
        )

    async def list_categories(
        self,
        include_inactive: bool = False,
        hierarchical: bool = False
    ) -> Union[CategoryTreeResponse, CategoryListResponse]:
        """
        Listar categorías.

        - Plano: todas las categorías con padre y conteos
        - Jerárquico: árbol desde las raíces; un hijo inactivo se omite
          (junto con su subárbol) salvo include_inactive
        """
        categories = self.repository.list_categories(include_inactive)
        product_counts = self.repository.get_product_counts()

        if hierarchical:
            return CategoryTreeResponse(
                categories=self._build_tree(categories, product_counts)
            )

        children_counts = self.repository.get_children_counts()
        return CategoryListResponse(
            categories=[
                CategoryItem(
                    id=c.id,
                    name=c.name,
                    description=c.description,
                    parent_id=c.parent_id,
                    parent=CategoryRef.model_validate(c.parent) if c.parent else None,
                    is_active=c.is_active,
                    product_count=product_counts.get(c.id, 0),
                    children_count=children_counts.get(c.id, 0),
                    created_at=c.created_at
                )
                for c in categories
            ]
        )

    async def get_category(self, category_id: int) -> CategoryWithProducts:
        category = self._get_or_404(category_id)
        detail = CategoryDetail.model_validate(category)
        products = self.repository.get_active_products(category_id)

        return CategoryWithProducts(
            **detail.model_dump(),
            products=[CategoryProduct.model_validate(p) for p in products]
        )

    async def update_category(
        self,
        category_id: int,
        update_data: CategoryUpdateRequest
    ) -> CategoryResponse:
        category = self._get_or_404(category_id)
        changes = update_data.dict(exclude_unset=True)

        for field in ('name', 'is_active'):
            if field in changes and changes[field] is None:
                changes.pop(field)

        parent_id = changes.get('parent_id')
        if parent_id is not None:
            if parent_id == category_id:
                raise InvalidCategoryParent(
                    "Una categoría no puede ser padre de sí misma",
                    details={"category_id": category_id}
                )
            self._ensure_parent(parent_id)
            if category_id in self.repository.get_ancestor_ids(parent_id):
                raise InvalidCategoryParent(
                    "El padre indicado es una subcategoría de esta categoría",
                    details={"category_id": category_id, "parent_id": parent_id}
                )

        category = self.repository.update(category, changes)
        return CategoryResponse(
            success=True,
            message="Categoría actualizada con éxito",
            category=CategoryDetail.model_validate(category)
        )

    async def delete_category(self, category_id: int) -> CategoryDeleteResponse:
        category = self._get_or_404(category_id)
        deactivated = self.repository.delete(category)
        message = (
            "Categoría desactivada con éxito (tiene productos o subcategorías)"
            if deactivated else "Categoría eliminada con éxito"
        )
        return CategoryDeleteResponse(success=True, message=message, deactivated=deactivated)

    # MÉTODOS PRIVADOS HELPERS

    def _get_or_404(self, category_id: int) -> Category:
        category = self.repository.get_by_id(category_id)
        if not category:
            raise CategoryNotFound(f"Categoría {category_id} no encontrada")
        return category

    def _ensure_parent(self, parent_id: int) -> None:
        if not self.repository.exists(parent_id):
            raise CategoryNotFound(
                f"Categoría padre {parent_id} no encontrada",
                details={"parent_id": parent_id},
                status_code=400
            )

    def _build_tree(self, categories: List[Category], product_counts: Dict[int, int]) -> List[CategoryNode]:
        by_parent: Dict[Optional[int], List[Category]] = {}
        for c in categories:
            by_parent.setdefault(c.parent_id, []).append(c)

        def build(category: Category, seen: set) -> CategoryNode:
            seen = seen | {category.id}
            return CategoryNode(
                id=category.id,
                name=category.name,
                description=category.description,
                is_active=category.is_active,
                product_count=product_counts.get(category.id, 0),
                children=[
                    build(child, seen)
                    for child in by_parent.get(category.id, [])
                    if child.id not in seen
                ]
            )

        # Una categoría activa bajo un padre inactivo no se muestra como raíz
        roots = [c for c in categories if c.parent_id is None]
        return [build(root, set()) for root in roots]
