# inventory_api/shared/repositories/product_store.py
from typing import Optional

from sqlalchemy.orm import Session

from inventory_api.core.exceptions import InsufficientStock, ValidationError
from inventory_api.shared.database.models import MAX_INT, Product


class ProductStore:
    """
    Acceso mínimo a productos usado por las operaciones que mueven stock.

    Todas las lecturas y escrituras usan la sesión recibida, de modo que
    quedan dentro de la transacción de quien llama.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, product_id: int, lock: bool = False) -> Optional[Product]:
        """Buscar producto por id; con lock=True usa SELECT FOR UPDATE"""
        query = self.db.query(Product).filter(Product.id == product_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    def find_by_code(self, code: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.code == code).first()

    def exists(self, code: str) -> bool:
        return self.db.query(Product.id).filter(Product.code == code).first() is not None

    def update_quantity(
        self,
        product: Product,
        delta: Optional[int] = None,
        absolute: Optional[int] = None
    ) -> int:
        """
        Aplicar un delta o fijar un valor absoluto de stock.

        Raises:
            InsufficientStock: si el resultado quedaría negativo
            ValidationError: si supera el rango de la columna quantity
        """
        if (delta is None) == (absolute is None):
            raise ValueError("Indicar exactamente uno de delta o absolute")

        new_quantity = absolute if absolute is not None else product.quantity + delta

        if new_quantity < 0:
            raise InsufficientStock(
                f"Stock insuficiente para el producto {product.title}. Disponible: {product.quantity}",
                details={
                    "product_id": product.id,
                    "available": product.quantity,
                    "requested": -delta if delta is not None else absolute
                }
            )

        if new_quantity > MAX_INT:
            raise ValidationError(
                f"El stock resultante de {product.title} supera el máximo permitido",
                details={"product_id": product.id, "max": MAX_INT}
            )

        product.quantity = new_quantity
        return new_quantity
