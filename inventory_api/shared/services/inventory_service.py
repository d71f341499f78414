from typing import Any, Dict, List, NamedTuple, Optional
import logging

from sqlalchemy.orm import Session

from inventory_api.core.exceptions import (
    InsufficientStock, ProductInactive, ProductNotFound
)
from inventory_api.shared.database.models import (
    InventoryChange, Product, Sale, StockOperation
)
from inventory_api.shared.repositories.product_store import ProductStore

logger = logging.getLogger(__name__)


class ReservedLine(NamedTuple):
    product: Product
    quantity: int


class InventoryService:
    """Operaciones de inventario que corren dentro de la transacción del llamador"""

    def __init__(self, db: Session):
        self.db = db
        self.store = ProductStore(db)

    def validate_and_reserve_stock(self, items: List[Dict[str, Any]]) -> List[ReservedLine]:
        """
        Validar stock de cada línea con bloqueo pesimista.

        - SELECT FOR UPDATE sobre cada producto
        - La cantidad pedida se acumula por producto, así dos líneas del
          mismo producto no pueden superar juntas el stock disponible
        - La primera línea inválida aborta toda la operación

        Args:
            items: [{product_id, quantity}]

        Returns:
            List[ReservedLine]: productos bloqueados con su cantidad, en el orden recibido

        Raises:
            ProductNotFound, ProductInactive, InsufficientStock
        """
        reserved = []
        requested_by_product: Dict[int, int] = {}

        for item in items:
            product = self.store.find_by_id(item['product_id'], lock=True)

            if not product:
                raise ProductNotFound(
                    f"Producto con ID {item['product_id']} no encontrado",
                    details={"product_id": item['product_id']},
                    status_code=400
                )

            if not product.is_active:
                raise ProductInactive(
                    f"Producto {product.title} está inactivo",
                    details={"product_id": product.id}
                )

            requested = requested_by_product.get(product.id, 0) + item['quantity']
            if product.quantity < requested:
                raise InsufficientStock(
                    f"Stock insuficiente para el producto {product.title}. Disponible: {product.quantity}",
                    details={
                        "product_id": product.id,
                        "available": product.quantity,
                        "requested": requested
                    }
                )

            requested_by_product[product.id] = requested
            reserved.append(ReservedLine(product, item['quantity']))

        return reserved

    def apply_sale(self, reserved: List[ReservedLine], sale_id: int, user_id: Optional[int] = None) -> None:
        """Descontar stock de productos YA RESERVADOS y registrar movimientos"""
        for line in reserved:
            self._move(
                line.product,
                delta=-line.quantity,
                change_type='sale',
                reference_id=sale_id,
                user_id=user_id,
                notes=f"Venta #{sale_id}"
            )

    def restore_sale(self, sale: Sale, user_id: Optional[int] = None) -> None:
        """
        Restituir exactamente las cantidades de cada item de la venta.

        Se aplica aunque el producto esté inactivo.
        """
        for item in sale.items:
            product = self.store.find_by_id(item.product_id, lock=True)
            if product is None:
                raise ProductNotFound(f"Producto con ID {item.product_id} no encontrado")
            self._move(
                product,
                delta=item.quantity,
                change_type='sale_cancellation',
                reference_id=sale.id,
                user_id=user_id,
                notes=f"Cancelación venta #{sale.id}"
            )

    def adjust_stock(
        self,
        product: Product,
        quantity: int,
        operation: StockOperation,
        user_id: Optional[int] = None
    ) -> int:
        """
        Ajuste manual de stock.

        Returns:
            int: cantidad resultante

        Raises:
            InsufficientStock: si SUBTRACT deja el stock negativo
        """
        if operation == StockOperation.ADD:
            return self._move(product, delta=quantity, change_type='stock_add', user_id=user_id)
        if operation == StockOperation.SUBTRACT:
            return self._move(product, delta=-quantity, change_type='stock_subtract', user_id=user_id)
        return self._move(product, absolute=quantity, change_type='stock_set', user_id=user_id)

    def record_manual_update(self, product: Product, new_quantity: int, user_id: Optional[int] = None) -> int:
        """Cantidad fijada desde la edición general del producto"""
        return self._move(product, absolute=new_quantity, change_type='manual_update', user_id=user_id)

    def _move(
        self,
        product: Product,
        change_type: str,
        delta: Optional[int] = None,
        absolute: Optional[int] = None,
        reference_id: Optional[int] = None,
        user_id: Optional[int] = None,
        notes: Optional[str] = None
    ) -> int:
        quantity_before = product.quantity
        quantity_after = self.store.update_quantity(product, delta=delta, absolute=absolute)

        self.db.add(InventoryChange(
            product_id=product.id,
            change_type=change_type,
            quantity_before=quantity_before,
            quantity_after=quantity_after,
            reference_id=reference_id,
            user_id=user_id,
            notes=notes
        ))

        logger.debug(f"Producto {product.code}: {quantity_before} -> {quantity_after} ({change_type})")
        return quantity_after
