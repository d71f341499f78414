from sqlalchemy.orm import Session, selectinload
from sqlalchemy import and_, or_, func
from sqlalchemy.exc import IntegrityError
from typing import Dict, Any, List, Optional, Tuple
from datetime import date, datetime, time, timedelta
from decimal import Decimal
import logging

from inventory_api.core.exceptions import (
    AppError, AlreadyCancelled, CannotCancelDelivered, DuplicateCode,
    InvalidDiscount, InvalidStatusTransition, SaleNotFound, ValidationError
)
from inventory_api.shared.database.models import MAX_MONEY, Sale, SaleItem, SaleStatus, Product
from inventory_api.shared.services.inventory_service import InventoryService
from .transitions import ALLOWED_TRANSITIONS, is_allowed

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

def to_money(value) -> Decimal:
    return Decimal(str(value if value is not None else 0)).quantize(CENT)

class SalesRepository:
    def __init__(self, db: Session):
        self.db = db
        self.inventory_service = InventoryService(db)

    def _query_with_items(self):
        return self.db.query(Sale).options(
            selectinload(Sale.items).selectinload(SaleItem.product)
        )

    def code_exists(self, code: str) -> bool:
        return self.db.query(Sale.id).filter(Sale.code == code).first() is not None

    def get_by_id(self, sale_id: int, lock: bool = False) -> Optional[Sale]:
        query = self._query_with_items().filter(Sale.id == sale_id)
        if lock:
            query = query.with_for_update(of=Sale)
        return query.first()

    def get_by_code(self, code: str) -> Optional[Sale]:
        return self._query_with_items().filter(Sale.code == code).first()

    def create_sale_atomic(
        self,
        sale_data: Dict[str, Any],
        user_id: Optional[int] = None
    ) -> Sale:
        """
        Crear venta con actualización de inventario en transacción atómica.

        Proceso:
        1. Verificar código único
        2. Validar y bloquear stock (SELECT FOR UPDATE)
        3. Calcular subtotales con el sale_price vigente y aplicar descuento
        4. Crear Sale + SaleItems
        5. Descontar inventario y registrar movimientos
        6. Commit único

        Returns:
            Sale: Venta creada con sus items

        Raises:
            DuplicateCode, ProductNotFound, ProductInactive,
            InsufficientStock, InvalidDiscount, ValidationError
        """
        code = sale_data['code']

        try:
            # PASO 1: Código único
            if self.code_exists(code):
                raise DuplicateCode(
                    f"Ya existe una venta con el código {code}",
                    details={"code": code}
                )

            # PASO 2: VALIDAR Y RESERVAR stock
            logger.info(f"Reservando stock para {len(sale_data['items'])} items")
            reserved = self.inventory_service.validate_and_reserve_stock(sale_data['items'])

            # PASO 3: Totales con precio congelado
            lines: List[Tuple[Product, int, Decimal, Decimal]] = []
            gross_total = Decimal("0.00")
            for line in reserved:
                unit_price = to_money(line.product.sale_price)
                subtotal = (unit_price * line.quantity).quantize(CENT)
                gross_total += subtotal
                lines.append((line.product, line.quantity, unit_price, subtotal))

            if gross_total > MAX_MONEY:
                raise ValidationError(
                    "El total de la venta supera el máximo permitido",
                    details={"gross_total": str(gross_total), "max": str(MAX_MONEY)}
                )

            requested_discount = Decimal(str(sale_data.get('discount') or 0))
            discount = to_money(requested_discount)
            if discount != requested_discount:
                raise InvalidDiscount(
                    "El descuento admite como máximo 2 decimales",
                    details={"discount": str(requested_discount)}
                )

            total_value = gross_total - discount
            if total_value < 0:
                raise InvalidDiscount(
                    "El descuento no puede ser mayor que el valor total",
                    details={"gross_total": str(gross_total), "discount": str(discount)}
                )

            # PASO 4: CREAR VENTA
            sale = Sale(
                code=code,
                customer=sale_data['customer'],
                discount=discount,
                total_value=total_value,
                status=SaleStatus.PENDING
            )
            for product, quantity, unit_price, subtotal in lines:
                sale.items.append(SaleItem(
                    product_id=product.id,
                    quantity=quantity,
                    unit_price=unit_price,
                    subtotal=subtotal
                ))

            self.db.add(sale)
            self.db.flush()  # Obtener sale.id
            logger.info(f"Venta creada con ID: {sale.id}")

            # PASO 5: ACTUALIZAR INVENTARIO
            self.inventory_service.apply_sale(reserved, sale.id, user_id)

            # PASO 6: COMMIT ÚNICO
            self.db.commit()
            logger.info(f"Transacción completada - Venta #{sale.id} ({code})")

            return self.get_by_id(sale.id)

        except AppError as e:
            logger.warning(f"Venta {code} rechazada: {e.detail}")
            self.db.rollback()
            raise
        except IntegrityError:
            self.db.rollback()
            if self.code_exists(code):
                raise DuplicateCode(
                    f"Ya existe una venta con el código {code}",
                    details={"code": code}
                )
            logger.exception("Error de integridad en transacción de venta")
            raise
        except Exception:
            logger.exception("Error en transacción de venta")
            self.db.rollback()
            raise

    def cancel_sale_atomic(self, sale_id: int, user_id: Optional[int] = None) -> Sale:
        """
        Cancelar venta y restituir stock en una sola transacción.

        Raises:
            SaleNotFound, AlreadyCancelled, CannotCancelDelivered
        """
        try:
            sale = self.get_by_id(sale_id, lock=True)

            if not sale:
                raise SaleNotFound(f"Venta {sale_id} no encontrada")

            if sale.status == SaleStatus.CANCELLED:
                raise AlreadyCancelled("La venta ya está cancelada")

            if sale.status == SaleStatus.DELIVERED:
                raise CannotCancelDelivered("No es posible cancelar una venta ya entregada")

            self.inventory_service.restore_sale(sale, user_id)
            sale.status = SaleStatus.CANCELLED

            self.db.commit()
            logger.info(f"Venta #{sale_id} cancelada y stock restituido")

            return self.get_by_id(sale_id)

        except AppError as e:
            logger.warning(f"Cancelación de venta {sale_id} rechazada: {e.detail}")
            self.db.rollback()
            raise
        except Exception:
            logger.exception("Error en transacción de cancelación")
            self.db.rollback()
            raise

    def update_status_atomic(
        self,
        sale_id: int,
        target: SaleStatus,
        strict: bool = True,
        user_id: Optional[int] = None
    ) -> Sale:
        """
        Cambiar estado según la tabla de transiciones.

        - Mismo estado: no-op
        - CANCELLED: se delega en cancel_sale_atomic (restituye stock)
        - Fuera de tabla: error en modo estricto, warning en modo permisivo
          (salir de CANCELLED siempre es error)
        """
        sale = self.get_by_id(sale_id, lock=True)
        if not sale:
            self.db.rollback()
            raise SaleNotFound(f"Venta {sale_id} no encontrada")

        current = sale.status
        if current == target:
            self.db.rollback()
            return sale

        if target == SaleStatus.CANCELLED:
            self.db.rollback()
            return self.cancel_sale_atomic(sale_id, user_id)

        if not is_allowed(current, target):
            # Una venta cancelada ya devolvió su stock: no se reabre en ningún modo
            if strict or current == SaleStatus.CANCELLED:
                self.db.rollback()
                raise InvalidStatusTransition(
                    f"Transición no permitida: {current.value} -> {target.value}",
                    details={
                        "current": current.value,
                        "requested": target.value,
                        "allowed": sorted(s.value for s in ALLOWED_TRANSITIONS[current])
                    }
                )
            logger.warning(f"Transición fuera de tabla aplicada: venta #{sale_id} {current.value} -> {target.value}")

        sale.status = target
        self.db.commit()
        logger.info(f"Venta #{sale_id}: {current.value} -> {target.value}")
        return self.get_by_id(sale_id)

    def _filtered_query(
        self,
        search: Optional[str] = None,
        status: Optional[SaleStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ):
        query = self.db.query(Sale)
        filters = []

        if search:
            pattern = f"%{search}%"
            filters.append(or_(Sale.code.ilike(pattern), Sale.customer.ilike(pattern)))
        if status:
            filters.append(Sale.status == status)
        if start_date:
            filters.append(Sale.sale_date >= datetime.combine(start_date, time.min))
        if end_date:
            # end_date incluye el día completo
            filters.append(Sale.sale_date < datetime.combine(end_date + timedelta(days=1), time.min))

        if filters:
            query = query.filter(and_(*filters))
        return query

    def list_sales(
        self,
        search: Optional[str] = None,
        status: Optional[SaleStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Sale], int]:
        """Listar ventas paginadas, más recientes primero"""
        base = self._filtered_query(search, status, start_date, end_date)
        total = base.count()

        sales = base.options(
            selectinload(Sale.items).selectinload(SaleItem.product)
        ).order_by(
            Sale.sale_date.desc(), Sale.id.desc()
        ).offset((page - 1) * limit).limit(limit).all()

        return sales, total

    def get_sales_for_report(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[Sale]:
        return self._filtered_query(start_date=start_date, end_date=end_date).options(
            selectinload(Sale.items).selectinload(SaleItem.product)
        ).order_by(Sale.sale_date.desc(), Sale.id.desc()).all()

    def get_status_summary(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        """Conteo y valor por estado (query agregado)"""
        rows = self._filtered_query(start_date=start_date, end_date=end_date).with_entities(
            Sale.status,
            func.count(Sale.id).label('count'),
            func.coalesce(func.sum(Sale.total_value), 0).label('total_value')
        ).group_by(Sale.status).all()

        return [
            {
                "status": row.status,
                "count": row.count,
                "total_value": to_money(row.total_value)
            }
            for row in rows
        ]
