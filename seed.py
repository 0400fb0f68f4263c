import logging
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import Session
import models, authentication, database
from config import configure_logging

logger = logging.getLogger(__name__)

SAMPLE_USERS = [
    {"full_name": "Admin User", "email": "admin@inventory.com", "password": "admin123", "role": models.Role.admin},
    {"full_name": "Staff User", "email": "staff@inventory.com", "password": "staff123", "role": models.Role.staff},
]

SAMPLE_SUPPLIERS = [
    {"supplier_id": "SUP-101", "name": "Tech Distributors", "contact": "9876543210", "address": "123 Warehouse St, Mumbai"},
    {"supplier_id": "SUP-102", "name": "Pharma Supplies Ltd", "contact": "8765432109", "address": "456 Medical Rd, Delhi"},
]


def _sample_products(today: datetime):
    next_year = today + timedelta(days=365)
    return [
        {"product_id": "P-1001", "name": "Wireless Mouse", "quantity": 50, "price": 1199.99,
         "supplier": "SUP-101", "manufactured_date": today, "expiry_date": next_year},
        {"product_id": "P-1002", "name": "Laptop Charger", "quantity": 25, "price": 2499.99,
         "supplier": "SUP-101", "manufactured_date": today, "expiry_date": next_year},
        {"product_id": "P-1003", "name": "Vitamin C Tablets", "quantity": 100, "price": 199.99,
         "supplier": "SUP-102", "manufactured_date": today - timedelta(days=30),
         "expiry_date": today + timedelta(days=150)},
        # expired stock, already retired
        {"product_id": "P-9001", "name": "Expired Medicine Batch", "quantity": 0, "price": 199.99,
         "supplier": "SUP-102", "manufactured_date": today - timedelta(days=180),
         "expiry_date": today - timedelta(days=30), "status": models.ProductStatus.obsolete},
        {"product_id": "P-9002", "name": "Old Electronic Components", "quantity": 5, "price": 499.99,
         "supplier": "SUP-101", "manufactured_date": today - timedelta(days=730),
         "expiry_date": today - timedelta(days=365), "status": models.ProductStatus.obsolete},
    ]


def load_sample_data(db: Session, today: datetime = None):
    """Create sample users, suppliers and products, skipping any that exist."""
    today = today or datetime.now(timezone.utc)
    created = {"users": 0, "suppliers": 0, "products": 0}

    for user in SAMPLE_USERS:
        if db.query(models.User).filter(models.User.email == user["email"]).first():
            continue
        db.add(models.User(
            full_name=user["full_name"],
            email=user["email"],
            hashed_password=authentication.get_password_hash(user["password"]),
            role=user["role"],
        ))
        created["users"] += 1

    suppliers = {}
    for supplier in SAMPLE_SUPPLIERS:
        db_sup = db.query(models.Supplier).filter(models.Supplier.supplier_id == supplier["supplier_id"]).first()
        if db_sup is None:
            db_sup = models.Supplier(**supplier)
            db.add(db_sup)
            created["suppliers"] += 1
        suppliers[supplier["supplier_id"]] = db_sup
    db.flush()

    for product in _sample_products(today):
        if db.query(models.Product).filter(models.Product.product_id == product["product_id"]).first():
            continue
        values = dict(product)
        values["supplier_ref"] = suppliers[values.pop("supplier")].id
        values.setdefault("status", models.ProductStatus.active)
        db.add(models.Product(**values))
        created["products"] += 1

    db.commit()
    logger.info("Sample data loaded: %s", created)
    return created


if __name__ == "__main__":
    configure_logging()
    database.init_db()
    session = database.LocalSession()
    try:
        load_sample_data(session)
    finally:
        session.close()
