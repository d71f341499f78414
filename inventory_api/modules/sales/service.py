# inventory_api/modules/sales/service.py
from sqlalchemy.orm import Session
from typing import Dict, List, Optional
from datetime import date
from decimal import Decimal
import logging

from inventory_api.config.settings import settings
from inventory_api.core.exceptions import SaleNotFound
from inventory_api.shared.database.models import Sale, SaleStatus
from inventory_api.shared.schemas.common import Pagination
from .repository import SalesRepository, to_money
from .schemas import (
    SaleCreateRequest, SaleDetail, SaleResponse, SaleListResponse,
    SalesReportResponse, StatusSummary, TopProduct
)
from .transitions import parse_status


logger = logging.getLogger(__name__)

class SalesService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = SalesRepository(db)

    async def create_sale(self, sale_data: SaleCreateRequest, user_id: Optional[int] = None) -> SaleResponse:
        """
        Registrar venta.

        Toda la validación de stock y la escritura ocurren en
        SalesRepository.create_sale_atomic dentro de una sola transacción.
        """
        logger.info(f"Iniciando venta {sale_data.code} - Usuario: {user_id}, Items: {len(sale_data.items)}")

        sale = self.repository.create_sale_atomic(
            sale_data=sale_data.dict(),
            user_id=user_id
        )

        return SaleResponse(
            success=True,
            message="Venta creada con éxito",
            sale=SaleDetail.model_validate(sale)
        )

    async def cancel_sale(self, sale_id: int, user_id: Optional[int] = None) -> SaleResponse:
        sale = self.repository.cancel_sale_atomic(sale_id, user_id)
        return SaleResponse(
            success=True,
            message="Venta cancelada y stock restituido con éxito",
            sale=SaleDetail.model_validate(sale)
        )

    async def update_status(self, sale_id: int, status: str, user_id: Optional[int] = None) -> SaleResponse:
        target = parse_status(status)
        sale = self.repository.update_status_atomic(
            sale_id,
            target,
            strict=settings.strict_status_transitions,
            user_id=user_id
        )
        return SaleResponse(
            success=True,
            message="Estado de la venta actualizado con éxito",
            sale=SaleDetail.model_validate(sale)
        )

    async def get_sale(self, sale_id: int) -> SaleDetail:
        sale = self.repository.get_by_id(sale_id)
        if not sale:
            raise SaleNotFound(f"Venta {sale_id} no encontrada")
        return SaleDetail.model_validate(sale)

    async def get_sale_by_code(self, code: str) -> SaleDetail:
        sale = self.repository.get_by_code(code)
        if not sale:
            raise SaleNotFound(f"Venta {code} no encontrada")
        return SaleDetail.model_validate(sale)

    async def list_sales(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        limit: int = 10
    ) -> SaleListResponse:
        """Listar ventas con filtros y paginación"""
        status_filter = parse_status(status) if status else None

        sales, total = self.repository.list_sales(
            search=search,
            status=status_filter,
            start_date=start_date,
            end_date=end_date,
            page=page,
            limit=limit
        )

        return SaleListResponse(
            sales=[SaleDetail.model_validate(sale) for sale in sales],
            pagination=Pagination.build(page, limit, total)
        )

    async def sales_report(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> SalesReportResponse:
        """
        Reporte del período.

        Los totales, el ticket promedio y el ranking de productos excluyen
        ventas canceladas; status_summary incluye todos los estados.
        """
        sales = self.repository.get_sales_for_report(start_date, end_date)
        status_summary = self.repository.get_status_summary(start_date, end_date)

        effective = [s for s in sales if s.status != SaleStatus.CANCELLED]
        total_value = sum((to_money(s.total_value) for s in effective), Decimal("0.00"))
        total_discount = sum((to_money(s.discount) for s in effective), Decimal("0.00"))
        average_ticket = (total_value / len(effective)).quantize(Decimal("0.01")) if effective else Decimal("0.00")

        return SalesReportResponse(
            period={
                "start_date": start_date.isoformat() if start_date else "Inicio",
                "end_date": end_date.isoformat() if end_date else "Actual"
            },
            summary={
                "total_sales": len(effective),
                "total_value": total_value,
                "total_discount": total_discount,
                "average_ticket": average_ticket
            },
            status_summary=[StatusSummary(**row) for row in status_summary],
            top_products=self._top_products(effective),
            sales=[SaleDetail.model_validate(sale) for sale in sales]
        )

    # MÉTODOS PRIVADOS HELPERS

    def _top_products(self, sales: List[Sale], limit: int = 10) -> List[TopProduct]:
        """Agrupar items por producto y ordenar por cantidad vendida"""
        by_product: Dict[int, Dict] = {}

        for sale in sales:
            for item in sale.items:
                entry = by_product.setdefault(item.product_id, {
                    "product_id": item.product_id,
                    "title": item.product.title if item.product else "Producto no encontrado",
                    "quantity": 0,
                    "value": Decimal("0.00")
                })
                entry["quantity"] += item.quantity
                entry["value"] += to_money(item.subtotal)

        ranked = sorted(by_product.values(), key=lambda e: e["quantity"], reverse=True)
        return [TopProduct(**entry) for entry in ranked[:limit]]
