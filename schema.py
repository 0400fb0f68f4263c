import re
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from config import settings
from models import Role, Unit, ProductStatus

SUPPLIER_ID_PATTERN = re.compile(r"^SUP-\d{3,5}$")
CONTACT_PATTERN = re.compile(r"^\d{10}$")

# --- Auth Schemas ---
class UserCreate(BaseModel):
    full_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
    role: Role = Role.staff

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value:
            raise ValueError("Invalid email address")
        return value

class UserLogin(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)

class User(BaseModel):
    id: int
    full_name: str
    email: str
    role: Role
    class Config:
        from_attributes = True

class UserRef(BaseModel):
    id: int
    full_name: str
    class Config:
        from_attributes = True

# --- Supplier Schemas ---
class SupplierBase(BaseModel):
    supplier_id: str
    name: str
    contact: str
    address: str

class SupplierCreate(SupplierBase):
    @field_validator("supplier_id")
    @classmethod
    def check_supplier_id(cls, value: str) -> str:
        value = value.strip().upper()
        if not SUPPLIER_ID_PATTERN.match(value):
            raise ValueError("Invalid Supplier ID (e.g., SUP-101)")
        return value

    @field_validator("contact")
    @classmethod
    def check_contact(cls, value: str) -> str:
        if not CONTACT_PATTERN.match(value):
            raise ValueError("Invalid phone number (10 digits)")
        return value

    @field_validator("name", "address")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Field is required")
        return value

class Supplier(SupplierBase):
    id: int
    created_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class SupplierRef(BaseModel):
    id: int
    supplier_id: str
    name: str
    class Config:
        from_attributes = True

# --- Product Schemas ---
class ProductBase(BaseModel):
    product_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    quantity: int = Field(ge=0, le=settings.MAX_QUANTITY)
    price: float = Field(ge=0)
    manufactured_date: datetime
    expiry_date: Optional[datetime] = None
    unit: Unit = Unit.pieces

class ProductCreate(ProductBase):
    supplier: int

class Product(ProductBase):
    id: int
    status: ProductStatus
    supplier_ref: int
    supplier: Optional[SupplierRef] = None
    class Config:
        from_attributes = True

class ProductRef(BaseModel):
    id: int
    product_id: str
    name: str
    class Config:
        from_attributes = True

class StockOutRequest(BaseModel):
    quantity: int

# --- Stock out log Schemas ---
class StockOutCreate(BaseModel):
    product: int
    quantity: int = Field(gt=0, le=settings.MAX_QUANTITY)
    timestamp: Optional[datetime] = None

class StockOut(BaseModel):
    id: int
    product_ref: int
    quantity: int
    timestamp: datetime
    recorded_by: int
    product: Optional[ProductRef] = None
    recorder: Optional[UserRef] = None
    class Config:
        from_attributes = True
