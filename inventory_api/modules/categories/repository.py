# inventory_api/modules/categories/repository.py
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import func
from typing import Dict, Any, List, Optional
import logging

from inventory_api.shared.database.models import Category, Product

logger = logging.getLogger(__name__)

class CategoriesRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, category_id: int) -> Optional[Category]:
        return self.db.query(Category).options(
            selectinload(Category.parent),
            selectinload(Category.children)
        ).filter(Category.id == category_id).first()

    def exists(self, category_id: int) -> bool:
        return self.db.query(Category.id).filter(Category.id == category_id).first() is not None

    def list_categories(self, include_inactive: bool = False) -> List[Category]:
        query = self.db.query(Category).options(selectinload(Category.parent))
        if not include_inactive:
            query = query.filter(Category.is_active.is_(True))
        return query.order_by(Category.name.asc(), Category.id.asc()).all()

    def get_product_counts(self) -> Dict[int, int]:
        """Cantidad de productos por categoría (query agregado)"""
        rows = self.db.query(
            Product.category_id,
            func.count(Product.id)
        ).filter(
            Product.category_id.isnot(None)
        ).group_by(Product.category_id).all()
        return {category_id: count for category_id, count in rows}

    def get_children_counts(self) -> Dict[int, int]:
        rows = self.db.query(
            Category.parent_id,
            func.count(Category.id)
        ).filter(
            Category.parent_id.isnot(None)
        ).group_by(Category.parent_id).all()
        return {parent_id: count for parent_id, count in rows}

    def get_active_products(self, category_id: int) -> List[Product]:
        return self.db.query(Product).filter(
            Product.category_id == category_id,
            Product.is_active.is_(True)
        ).order_by(Product.title.asc()).all()

    def get_ancestor_ids(self, category_id: int) -> List[int]:
        """Ids de la cadena de padres, del padre directo hacia la raíz"""
        ancestors = []
        current = self.db.query(Category.parent_id).filter(Category.id == category_id).scalar()
        while current is not None and current not in ancestors:
            ancestors.append(current)
            current = self.db.query(Category.parent_id).filter(Category.id == current).scalar()
        return ancestors

    def has_dependents(self, category_id: int) -> bool:
        has_products = self.db.query(Product.id).filter(Product.category_id == category_id).first() is not None
        has_children = self.db.query(Category.id).filter(Category.parent_id == category_id).first() is not None
        return has_products or has_children

    def create(self, data: Dict[str, Any]) -> Category:
        category = Category(**data)
        self.db.add(category)
        self.db.commit()
        logger.info(f"Categoría creada: {category.name} (ID {category.id})")
        return self.get_by_id(category.id)

    def update(self, category: Category, changes: Dict[str, Any]) -> Category:
        try:
            for field, value in changes.items():
                setattr(category, field, value)
            self.db.commit()
            return self.get_by_id(category.id)
        except Exception:
            logger.exception(f"Error actualizando categoría {category.id}")
            self.db.rollback()
            raise

    def delete(self, category: Category) -> bool:
        """
        Eliminar categoría.

        Returns:
            bool: True si solo se desactivó (tiene productos o subcategorías)
        """
        try:
            if self.has_dependents(category.id):
                category.is_active = False
                self.db.commit()
                logger.info(f"Categoría {category.id} desactivada (tiene dependencias)")
                return True

            self.db.delete(category)
            self.db.commit()
            logger.info(f"Categoría {category.id} eliminada")
            return False
        except Exception:
            logger.exception(f"Error eliminando categoría {category.id}")
            self.db.rollback()
            raise
