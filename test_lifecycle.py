from datetime import datetime

import pytest

import lifecycle
from conftest import TestingSessionLocal
from errors import BusinessRuleError, InsufficientStock, InvalidQuantity, NotFound
from models import Product, ProductStatus, Supplier


@pytest.fixture
def product(db_session):
    supplier = Supplier(supplier_id="SUP-101", name="Tech Distributors", contact="9876543210", address="Mumbai")
    db_session.add(supplier)
    db_session.flush()
    item = Product(
        product_id="P-1001", name="Wireless Mouse", quantity=50, price=10.0,
        manufactured_date=datetime(2026, 1, 1), supplier_ref=supplier.id,
    )
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


@pytest.mark.parametrize("quantity, expected", [
    (0, ProductStatus.out_of_stock),
    (1, ProductStatus.low_stock),
    (9, ProductStatus.low_stock),
    (10, ProductStatus.active),
    (500, ProductStatus.active),
])
def test_derive_status(quantity, expected):
    assert lifecycle.derive_status(quantity) == expected


def test_new_product_defaults_to_active(product):
    assert product.status == ProductStatus.active


def test_stock_out_updates_quantity_and_status(db_session, product):
    updated = lifecycle.stock_out(db_session, product.id, 41)
    assert updated.quantity == 9
    assert updated.status == ProductStatus.low_stock


def test_stock_out_is_all_or_nothing(db_session, product):
    with pytest.raises(InsufficientStock) as excinfo:
        lifecycle.stock_out(db_session, product.id, 51)
    assert excinfo.value.available == 50
    db_session.refresh(product)
    assert product.quantity == 50
    assert product.status == ProductStatus.active


@pytest.mark.parametrize("amount", [0, -1, None])
def test_stock_out_rejects_non_positive(db_session, product, amount):
    with pytest.raises(InvalidQuantity):
        lifecycle.stock_out(db_session, product.id, amount)


def test_stock_out_missing_product(db_session):
    with pytest.raises(NotFound):
        lifecycle.stock_out(db_session, 404, 1)


def test_stock_out_blocked_when_obsolete(db_session, product):
    lifecycle.mark_obsolete(db_session, product.id)
    with pytest.raises(BusinessRuleError):
        lifecycle.stock_out(db_session, product.id, 1)
    db_session.refresh(product)
    assert product.quantity == 50


@pytest.mark.parametrize("drain", [0, 41, 50])
def test_mark_obsolete_from_any_status_is_idempotent(db_session, product, drain):
    if drain:
        lifecycle.stock_out(db_session, product.id, drain)
    first = lifecycle.mark_obsolete(db_session, product.id)
    assert first.status == ProductStatus.obsolete
    second = lifecycle.mark_obsolete(db_session, product.id)
    assert second.status == ProductStatus.obsolete
    assert second.quantity == 50 - drain


def test_restore_recomputes_from_quantity(db_session, product):
    lifecycle.mark_obsolete(db_session, product.id)
    assert lifecycle.restore(db_session, product.id).status == ProductStatus.active

    lifecycle.stock_out(db_session, product.id, 50)
    lifecycle.mark_obsolete(db_session, product.id)
    assert lifecycle.restore(db_session, product.id).status == ProductStatus.out_of_stock


def test_restore_missing_product(db_session):
    with pytest.raises(NotFound):
        lifecycle.restore(db_session, 404)


def test_list_obsolete(db_session, product):
    assert lifecycle.list_obsolete(db_session) == []
    lifecycle.mark_obsolete(db_session, product.id)
    assert [p.product_id for p in lifecycle.list_obsolete(db_session)] == ["P-1001"]


def test_stock_out_after_concurrent_obsolete_is_rejected(db_session, product):
    # db_session still holds the product as active
    other = TestingSessionLocal()
    try:
        lifecycle.mark_obsolete(other, product.id)
    finally:
        other.close()

    with pytest.raises(BusinessRuleError):
        lifecycle.stock_out(db_session, product.id, 1)
    db_session.refresh(product)
    assert product.quantity == 50
    assert product.status == ProductStatus.obsolete


def test_oversized_stock_out_is_insufficient(db_session, product):
    with pytest.raises(InsufficientStock) as excinfo:
        lifecycle.stock_out(db_session, product.id, 10**20)
    assert excinfo.value.available == 50
