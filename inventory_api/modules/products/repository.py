# inventory_api/modules/products/repository.py
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from typing import Dict, Any, List, Optional, Tuple
import logging

from inventory_api.core.exceptions import AppError, DuplicateCode, ProductNotFound
from inventory_api.shared.database.models import (
    Category, InventoryChange, Product, Sale, SaleItem, StockOperation
)
from inventory_api.shared.repositories.product_store import ProductStore
from inventory_api.shared.services.inventory_service import InventoryService
from inventory_api.shared.services.stock_policies import reorder_threshold_clause

logger = logging.getLogger(__name__)

class ProductsRepository(ProductStore):
    def __init__(self, db: Session):
        super().__init__(db)
        self.inventory_service = InventoryService(db)

    def get_detail(self, product_id: int) -> Optional[Product]:
        return self.db.query(Product).options(
            joinedload(Product.category)
        ).filter(Product.id == product_id).first()

    def get_detail_by_code(self, code: str) -> Optional[Product]:
        return self.db.query(Product).options(
            joinedload(Product.category)
        ).filter(Product.code == code).first()

    def category_exists(self, category_id: int) -> bool:
        return self.db.query(Category.id).filter(Category.id == category_id).first() is not None

    def has_sales(self, product_id: int) -> bool:
        return self.db.query(SaleItem.id).filter(SaleItem.product_id == product_id).first() is not None

    def list_products(
        self,
        search: Optional[str] = None,
        category_id: Optional[int] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Product], int]:
        """Listar productos paginados, más recientes primero"""
        query = self.db.query(Product)
        filters = []

        if search:
            pattern = f"%{search}%"
            filters.append(or_(Product.code.ilike(pattern), Product.title.ilike(pattern)))
        if category_id:
            filters.append(Product.category_id == category_id)
        if is_active is not None:
            filters.append(Product.is_active == is_active)

        if filters:
            query = query.filter(and_(*filters))

        total = query.count()
        products = query.options(joinedload(Product.category)).order_by(
            Product.created_at.desc(), Product.id.desc()
        ).offset((page - 1) * limit).limit(limit).all()

        return products, total

    def get_recent_sale_lines(self, product_id: int, limit: int = 5) -> List[Dict[str, Any]]:
        """Últimas líneas de venta del producto"""
        rows = self.db.query(
            SaleItem.quantity,
            SaleItem.unit_price,
            SaleItem.subtotal,
            Sale.id.label('sale_id'),
            Sale.code.label('sale_code'),
            Sale.sale_date,
            Sale.customer
        ).join(
            Sale, SaleItem.sale_id == Sale.id
        ).filter(
            SaleItem.product_id == product_id
        ).order_by(
            Sale.sale_date.desc(), Sale.id.desc()
        ).limit(limit).all()

        return [dict(row._mapping) for row in rows]

    def get_low_stock(self) -> List[Product]:
        """Productos activos bajo el umbral de reposición, menor stock primero"""
        return self.db.query(Product).options(
            joinedload(Product.category)
        ).filter(
            Product.is_active.is_(True),
            reorder_threshold_clause()
        ).order_by(Product.quantity.asc(), Product.id.asc()).all()

    def get_movements(self, product_id: int, limit: int = 50) -> List[InventoryChange]:
        return self.db.query(InventoryChange).filter(
            InventoryChange.product_id == product_id
        ).order_by(
            InventoryChange.created_at.desc(), InventoryChange.id.desc()
        ).limit(limit).all()

    def create_product(self, product_data: Dict[str, Any]) -> Product:
        try:
            product = Product(**product_data)
            self.db.add(product)
            self.db.commit()
            logger.info(f"Producto creado: {product.code} (ID {product.id})")
            return self.get_detail(product.id)
        except IntegrityError:
            self.db.rollback()
            if self.exists(product_data['code']):
                raise DuplicateCode(
                    f"Ya existe un producto con el código {product_data['code']}",
                    details={"code": product_data['code']}
                )
            raise

    def update_product(
        self,
        product_id: int,
        changes: Dict[str, Any],
        user_id: Optional[int] = None
    ) -> Product:
        """
        Actualizar campos del producto.

        Un cambio de quantity queda registrado como movimiento manual_update
        en la misma transacción.
        """
        try:
            product = self.find_by_id(product_id, lock='quantity' in changes)
            if not product:
                raise ProductNotFound(f"Producto {product_id} no encontrado")

            new_quantity = changes.pop('quantity', None)
            for field, value in changes.items():
                setattr(product, field, value)

            if new_quantity is not None and new_quantity != product.quantity:
                self.inventory_service.record_manual_update(product, new_quantity, user_id)

            self.db.commit()
            return self.get_detail(product_id)

        except AppError:
            self.db.rollback()
            raise
        except Exception:
            logger.exception(f"Error actualizando producto {product_id}")
            self.db.rollback()
            raise

    def delete_product(self, product_id: int) -> bool:
        """
        Eliminar producto.

        Returns:
            bool: True si solo se desactivó (tiene historial de ventas)
        """
        product = self.find_by_id(product_id)
        if not product:
            raise ProductNotFound(f"Producto {product_id} no encontrado")

        try:
            if self.has_sales(product_id):
                product.is_active = False
                self.db.commit()
                logger.info(f"Producto {product.code} desactivado (tiene ventas)")
                return True

            self.db.delete(product)
            self.db.commit()
            logger.info(f"Producto {product.code} eliminado")
            return False
        except Exception:
            logger.exception(f"Error eliminando producto {product_id}")
            self.db.rollback()
            raise

    def update_stock_atomic(
        self,
        product_id: int,
        quantity: int,
        operation: StockOperation,
        user_id: Optional[int] = None
    ) -> Product:
        """
        Ajuste de stock con bloqueo de fila y movimiento registrado.

        Raises:
            ProductNotFound, InsufficientStock
        """
        try:
            product = self.find_by_id(product_id, lock=True)
            if not product:
                raise ProductNotFound(f"Producto {product_id} no encontrado")

            before = product.quantity
            after = self.inventory_service.adjust_stock(product, quantity, operation, user_id)

            self.db.commit()
            logger.info(f"Stock {product.code}: {before} -> {after} ({operation.value})")
            return self.get_detail(product_id)

        except AppError as e:
            logger.warning(f"Ajuste de stock rechazado para producto {product_id}: {e.detail}")
            self.db.rollback()
            raise
        except Exception:
            logger.exception(f"Error en ajuste de stock del producto {product_id}")
            self.db.rollback()
            raise
