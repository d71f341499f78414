#!/usr/bin/env python3
"""
Carga el catálogo de demostración y el usuario administrador.

Uso:
    python -m scripts.seed           # no hace nada si ya hay productos
    python -m scripts.seed --reset   # borra ventas, productos y categorías antes
"""
import argparse
import sys
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()

from sqlalchemy.exc import SQLAlchemyError  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from inventory_api.config.database import Base, SessionLocal, engine  # noqa: E402
from inventory_api.core.auth.service import AuthService  # noqa: E402
from inventory_api.modules.sales.repository import SalesRepository  # noqa: E402
from inventory_api.shared.database.models import (  # noqa: E402
    Category, InventoryChange, Product, Sale, SaleItem, SaleStatus, User, UserRole
)

ADMIN_USER = ("admin@inventory.com", "admin123", "Administrador", UserRole.ADMIN)

CATEGORIES = [
    # (nombre, descripción, padre)
    ("Accessories", "Jewelry and accessories category", None),
    ("Rings", "Various types of rings", "Accessories"),
    ("Bracelets", "Bracelets and bangles", "Accessories"),
    ("Necklaces", "Necklaces and chains", "Accessories"),
]

PRODUCTS = [
    # (código, título, descripción, categoría, stock, costo, venta, mínimo)
    ("RING001", "Gold Ring 18k", "18k gold ring with polished finish", "Rings", 12, "150.00", "220.00", 5),
    ("RING002", "Silver Ring 925", "925 silver ring with zirconia stone", "Rings", 18, "45.00", "75.00", 8),
    ("BRAC001", "Leather Bracelet", "Genuine leather bracelet with steel clasp", "Bracelets", 25, "20.00", "35.00", 10),
    ("BRAC002", "Silver Chain Bracelet", "925 silver chain bracelet 20cm", "Bracelets", 15, "65.00", "95.00", 6),
    ("NECK001", "Silver Venetian Chain", "925 silver venetian chain 60cm", "Necklaces", 10, "80.00", "120.00", 4),
    ("NECK002", "Gold Chain 18k", "18k gold cartier chain 50cm", "Necklaces", 6, "350.00", "500.00", 2),
]

SAMPLE_SALE = {
    "code": "SALE001",
    "customer": "John Doe",
    "items": [("RING001", 1), ("BRAC002", 1)],
}


def clear_catalog(db: Session) -> None:
    db.query(SaleItem).delete()
    db.query(Sale).delete()
    db.query(InventoryChange).delete()
    db.query(Product).delete()
    db.query(Category).update({Category.parent_id: None})
    db.query(Category).delete()
    db.commit()


def ensure_admin(db: Session) -> bool:
    email, password, name, role = ADMIN_USER
    if db.query(User).filter(User.email == email).first():
        return False
    db.add(User(
        name=name,
        email=email,
        password_hash=AuthService.get_password_hash(password),
        role=role.value,
        is_active=True
    ))
    db.commit()
    return True


def seed_database(db: Session, reset: bool = False) -> dict:
    """
    Cargar datos de demostración.

    La venta de ejemplo pasa por SalesRepository, así descuenta stock y
    deja sus movimientos igual que una venta real.

    Returns:
        dict: conteos de lo creado (vacío si ya había catálogo y no se pidió reset)
    """
    if reset:
        clear_catalog(db)

    admin_created = ensure_admin(db)

    if db.query(Product.id).first() is not None:
        return {"admin_created": admin_created}

    categories = {}
    for name, description, parent in CATEGORIES:
        category = Category(
            name=name,
            description=description,
            parent_id=categories[parent].id if parent else None
        )
        db.add(category)
        db.flush()
        categories[name] = category

    products = {}
    for code, title, description, category, quantity, unit_price, sale_price, min_stock in PRODUCTS:
        product = Product(
            code=code,
            title=title,
            description=description,
            category_id=categories[category].id,
            quantity=quantity,
            unit_price=Decimal(unit_price),
            sale_price=Decimal(sale_price),
            min_stock=min_stock
        )
        db.add(product)
        products[code] = product
    db.commit()

    admin = db.query(User).filter(User.email == ADMIN_USER[0]).first()
    repository = SalesRepository(db)
    sale = repository.create_sale_atomic(
        {
            "code": SAMPLE_SALE["code"],
            "customer": SAMPLE_SALE["customer"],
            "discount": Decimal("0"),
            "items": [
                {"product_id": products[code].id, "quantity": quantity}
                for code, quantity in SAMPLE_SALE["items"]
            ]
        },
        user_id=admin.id
    )
    repository.update_status_atomic(sale.id, SaleStatus.CONFIRMED, user_id=admin.id)

    return {
        "admin_created": admin_created,
        "categories": len(categories),
        "products": len(products),
        "sales": 1
    }


def main() -> bool:
    parser = argparse.ArgumentParser(description="Cargar datos de demostración")
    parser.add_argument("--reset", action="store_true", help="Borrar catálogo y ventas antes de cargar")
    args = parser.parse_args()

    print("🚀 Inventory API - Cargando datos de demostración...")

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        result = seed_database(db, reset=args.reset)
    except SQLAlchemyError as e:
        db.rollback()
        print(f"❌ Error de base de datos: {e}")
        return False
    finally:
        db.close()

    if result.get("admin_created"):
        print(f"✅ Usuario creado: {ADMIN_USER[0]} / {ADMIN_USER[1]} ({ADMIN_USER[3].value})")
    else:
        print(f"⏭️  Usuario {ADMIN_USER[0]} ya existe")

    if "products" in result:
        print(f"✅ {result['categories']} categorías (1 principal + 3 subcategorías)")
        print(f"✅ {result['products']} productos")
        print(f"✅ {result['sales']} venta de ejemplo")
    else:
        print("ℹ️  El catálogo ya tenía productos; usar --reset para recargarlo")

    return True


if __name__ == "__main__":
    if not main():
        print("\n❌ Script falló. Revisar errores arriba.")
        sys.exit(1)
    print("\n✅ Script completado exitosamente")
