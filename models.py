import enum
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, ForeignKey, Float, DateTime, Enum, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base


def utcnow():
    return datetime.now(timezone.utc)


class Role(str, enum.Enum):
    admin = "admin"
    staff = "staff"


class Unit(str, enum.Enum):
    pieces = "pieces"
    kg = "kg"


class ProductStatus(str, enum.Enum):
    active = "active"
    low_stock = "low-stock"
    out_of_stock = "out-of-stock"
    obsolete = "obsolete"


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(Enum(Role, values_callable=lambda e: [m.value for m in e]), nullable=False, default=Role.staff)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    stock_outs = relationship("StockOut", back_populates="recorder")


class Supplier(Base):
    __tablename__ = "suppliers"
    id = Column(Integer, primary_key=True, index=True)
    supplier_id = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    contact = Column(String, nullable=False)
    address = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    products = relationship("Product", back_populates="supplier")


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )
    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, index=True, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    price = Column(Float, nullable=False)
    manufactured_date = Column(DateTime(timezone=True), nullable=False)
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    unit = Column(Enum(Unit, values_callable=lambda e: [m.value for m in e]), nullable=False, default=Unit.pieces)
    status = Column(
        Enum(ProductStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ProductStatus.active,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    supplier_ref = Column(Integer, ForeignKey("suppliers.id"), nullable=False)

    supplier = relationship("Supplier", back_populates="products")
    stock_outs = relationship("StockOut", back_populates="product")


class StockOut(Base):
    __tablename__ = "stock_out_records"
    id = Column(Integer, primary_key=True, index=True)
    quantity = Column(Integer, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    product_ref = Column(Integer, ForeignKey("products.id"), nullable=False)
    recorded_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    product = relationship("Product", back_populates="stock_outs")
    recorder = relationship("User", back_populates="stock_outs")
