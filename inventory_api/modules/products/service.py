# inventory_api/modules/products/service.py
from sqlalchemy.orm import Session
from typing import Optional
import logging

from inventory_api.core.exceptions import CategoryNotFound, DuplicateCode, ProductNotFound
from inventory_api.shared.schemas.common import Pagination
from inventory_api.shared.services.stock_policies import is_at_or_below_minimum
from .repository import ProductsRepository
from .schemas import (
    ProductCreateRequest, ProductUpdateRequest, StockUpdateRequest,
    ProductDetail, ProductWithSales, RecentSaleLine, ProductResponse,
    ProductListResponse, ProductDeleteResponse, StockUpdateResponse,
    LowStockResponse, InventoryMovement, MovementListResponse
)

logger = logging.getLogger(__name__)

class ProductsService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = ProductsRepository(db)

    async def create_product(self, product_data: ProductCreateRequest) -> ProductResponse:
        if product_data.category_id is not None:
            self._ensure_category(product_data.category_id)

        if self.repository.exists(product_data.code):
            raise DuplicateCode(
                f"Ya existe un producto con el código {product_data.code}",
                details={"code": product_data.code}
            )

        product = self.repository.create_product(product_data.dict())
        return ProductResponse(
            success=True,
            message="Producto creado con éxito",
            product=ProductDetail.model_validate(product)
        )

    async def list_products(
        self,
        search: Optional[str] = None,
        category_id: Optional[int] = None,
        is_active: Optional[bool] = None,
        page: int = 1,
        limit: int = 10
    ) -> ProductListResponse:
        products, total = self.repository.list_products(search, category_id, is_active, page, limit)
        return ProductListResponse(
            products=[ProductDetail.model_validate(p) for p in products],
            pagination=Pagination.build(page, limit, total)
        )

    async def get_product(self, product_id: int) -> ProductWithSales:
        """Producto con sus últimas 5 líneas de venta"""
        product = self.repository.get_detail(product_id)
        if not product:
            raise ProductNotFound(f"Producto {product_id} no encontrado")

        detail = ProductDetail.model_validate(product)
        recent = self.repository.get_recent_sale_lines(product_id, limit=5)

        return ProductWithSales(
            **detail.model_dump(),
            recent_sales=[RecentSaleLine(**line) for line in recent]
        )

    async def get_product_by_code(self, code: str) -> ProductDetail:
        product = self.repository.get_detail_by_code(code)
        if not product:
            raise ProductNotFound(f"Producto {code} no encontrado")
        return ProductDetail.model_validate(product)

    async def update_product(
        self,
        product_id: int,
        update_data: ProductUpdateRequest,
        user_id: Optional[int] = None
    ) -> ProductResponse:
        changes = update_data.dict(exclude_unset=True)

        # None explícito en campos obligatorios no se aplica
        for field in ('title', 'quantity', 'unit_price', 'sale_price', 'min_stock', 'is_active'):
            if field in changes and changes[field] is None:
                changes.pop(field)

        if changes.get('category_id') is not None:
            self._ensure_category(changes['category_id'])

        product = self.repository.update_product(product_id, changes, user_id)
        return ProductResponse(
            success=True,
            message="Producto actualizado con éxito",
            product=ProductDetail.model_validate(product)
        )

    async def delete_product(self, product_id: int) -> ProductDeleteResponse:
        deactivated = self.repository.delete_product(product_id)
        message = (
            "Producto desactivado con éxito (tiene historial de ventas)"
            if deactivated else "Producto eliminado con éxito"
        )
        return ProductDeleteResponse(success=True, message=message, deactivated=deactivated)

    async def update_stock(
        self,
        product_id: int,
        request: StockUpdateRequest,
        user_id: Optional[int] = None
    ) -> StockUpdateResponse:
        """
        Ajustar stock (ADD, SUBTRACT o SET).

        El aviso de stock bajo no es un error: se devuelve junto al producto
        cuando la cantidad resultante queda en o por debajo de min_stock.
        """
        product = self.repository.update_stock_atomic(
            product_id, request.quantity, request.operation, user_id
        )

        warning = None
        if is_at_or_below_minimum(product.quantity, product.min_stock):
            warning = f"Stock por debajo del mínimo ({product.min_stock})"
            logger.warning(f"Producto {product.code}: stock {product.quantity} <= mínimo {product.min_stock}")

        return StockUpdateResponse(
            success=True,
            message="Stock actualizado con éxito",
            product=ProductDetail.model_validate(product),
            warning=warning
        )

    async def get_low_stock(self) -> LowStockResponse:
        products = self.repository.get_low_stock()
        return LowStockResponse(
            success=True,
            message=f"{len(products)} productos con stock bajo",
            products=[ProductDetail.model_validate(p) for p in products]
        )

    async def get_movements(self, product_id: int, limit: int = 50) -> MovementListResponse:
        if not self.repository.find_by_id(product_id):
            raise ProductNotFound(f"Producto {product_id} no encontrado")

        movements = self.repository.get_movements(product_id, limit)
        return MovementListResponse(
            product_id=product_id,
            movements=[InventoryMovement.model_validate(m) for m in movements]
        )

    def _ensure_category(self, category_id: int) -> None:
        if not self.repository.category_exists(category_id):
            raise CategoryNotFound(
                f"Categoría {category_id} no encontrada",
                details={"category_id": category_id},
                status_code=400
            )
