"""
Product status lifecycle.

States: active, low-stock, out-of-stock, obsolete.

The first three are derived from quantity by ``derive_status``. ``obsolete``
is set only by an admin and sticks until ``restore`` recomputes the status
from the current quantity. Newly created products start ``active`` whatever
their quantity.
"""

import logging
from typing import List
from sqlalchemy import update
from sqlalchemy.orm import Session
from config import settings
from errors import NotFound, InsufficientStock, InvalidQuantity, BusinessRuleError
from models import Product, ProductStatus

logger = logging.getLogger(__name__)


def derive_status(quantity: int) -> ProductStatus:
    if quantity == 0:
        return ProductStatus.out_of_stock
    if quantity < settings.LOW_STOCK_THRESHOLD:
        return ProductStatus.low_stock
    return ProductStatus.active


def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if product is None:
        raise NotFound("Product not found")
    return product


def stock_out(db: Session, product_id: int, amount: int) -> Product:
    """
    Remove ``amount`` units from a product, all or nothing.

    The decrement is a conditional UPDATE guarded by ``quantity >= amount``,
    so two concurrent requests can never push the quantity below zero.

    Raises:
        InvalidQuantity: amount is not positive
        NotFound: product does not exist
        BusinessRuleError: product is obsolete
        InsufficientStock: amount exceeds the available quantity
    """
    if amount is None or amount <= 0:
        raise InvalidQuantity()

    product = get_product(db, product_id)
    if product.status == ProductStatus.obsolete:
        raise BusinessRuleError("Cannot stock out an obsolete product")
    # amounts past the stored quantity never reach the database driver
    if amount > product.quantity:
        logger.info(
            "Stock out of %s rejected for product %s, %s available",
            amount, product.product_id, product.quantity,
        )
        raise InsufficientStock(product.quantity)

    result = db.execute(
        update(Product)
        .where(
            Product.id == product_id,
            Product.quantity >= amount,
            Product.status != ProductStatus.obsolete,
        )
        .values(quantity=Product.quantity - amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        db.refresh(product)
        logger.info(
            "Stock out of %s rejected for product %s, %s available",
            amount, product.product_id, product.quantity,
        )
        if product.status == ProductStatus.obsolete:
            raise BusinessRuleError("Cannot stock out an obsolete product")
        raise InsufficientStock(product.quantity)

    db.refresh(product)
    old_status = product.status
    product.status = derive_status(product.quantity)
    db.commit()
    db.refresh(product)
    logger.info(
        "Stock out %s from product %s: quantity=%s status %s -> %s",
        amount, product.product_id, product.quantity, old_status.value, product.status.value,
    )
    return product


def mark_obsolete(db: Session, product_id: int) -> Product:
    product = get_product(db, product_id)
    old_status = product.status
    product.status = ProductStatus.obsolete
    db.commit()
    db.refresh(product)
    logger.info("Product %s marked obsolete (was %s)", product.product_id, old_status.value)
    return product


def restore(db: Session, product_id: int) -> Product:
    product = get_product(db, product_id)
    old_status = product.status
    product.status = derive_status(product.quantity)
    db.commit()
    db.refresh(product)
    logger.info(
        "Product %s restored: status %s -> %s", product.product_id, old_status.value, product.status.value
    )
    return product


def list_obsolete(db: Session) -> List[Product]:
    return db.query(Product).filter(Product.status == ProductStatus.obsolete).order_by(Product.id).all()
