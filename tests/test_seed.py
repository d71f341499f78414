from scripts.seed import ADMIN_USER, seed_database
from inventory_api.shared.database.models import Category, InventoryChange, Product, Sale, SaleStatus, User


def _stock(db, code):
    return db.query(Product).filter(Product.code == code).one().quantity


class TestSeed:

    def test_loads_catalog_and_sample_sale(self, db):
        result = seed_database(db)

        assert result == {"admin_created": True, "categories": 4, "products": 6, "sales": 1}

        accessories = db.query(Category).filter(Category.name == "Accessories").one()
        assert accessories.parent_id is None
        assert {c.name for c in accessories.children} == {"Rings", "Bracelets", "Necklaces"}

        sale = db.query(Sale).one()
        assert sale.code == "SALE001"
        assert sale.status == SaleStatus.CONFIRMED
        assert _stock(db, "RING001") == 11
        assert _stock(db, "BRAC002") == 14
        assert db.query(InventoryChange).filter(InventoryChange.change_type == "sale").count() == 2

    def test_admin_can_log_in(self, client, db):
        seed_database(db)
        email, password, _, _ = ADMIN_USER

        response = client.post("/api/auth/login", json={"email": email, "password": password})

        assert response.status_code == 200
        assert response.json()["user"]["role"] == "ADMIN"

    def test_second_run_keeps_existing_catalog(self, db):
        seed_database(db)

        result = seed_database(db)

        assert result == {"admin_created": False}
        assert db.query(Product).count() == 6
        assert db.query(Sale).count() == 1
        assert db.query(User).count() == 1

    def test_reset_reloads_catalog(self, db):
        seed_database(db)
        db.query(Product).filter(Product.code == "RING001").one().quantity = 0
        db.commit()

        result = seed_database(db, reset=True)

        assert result["products"] == 6
        assert db.query(Category).count() == 4
        assert _stock(db, "RING001") == 11
