import io
import logging
import pandas as pd
from config import settings, configure_logging
from sqlalchemy import text, select
from typing import List
from sqlalchemy.orm import Session, joinedload
from datetime import datetime, timezone
import models, schema, authentication, database, lifecycle
from authentication import Identity, require_authenticated, require_admin
from errors import ValidationError, AuthenticationError, register_exception_handlers
from fastapi.responses import StreamingResponse
from fastapi import APIRouter, FastAPI, Depends, HTTPException, Response, status

configure_logging()
logger = logging.getLogger(__name__)

database.init_db()

app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION)
register_exception_handlers(app)
api = APIRouter(prefix=settings.API_PREFIX)

# basic info
@app.get("/", tags=["System"])
def basic_info():
    return {"app_name": settings.PROJECT_NAME, "version": settings.VERSION}

# app health
@app.get("/health", tags=["System"])
def health_status(db: Session = Depends(database.obtain_db_session)):
    health_report = {
        "app_name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "server_time": datetime.now(timezone.utc).isoformat(),
        "services": {
            "api": "online",
            "database": "unknown"
        }
    }

    try:
        db.execute(text("SELECT 1"))
        health_report["services"]["database"] = "online"
        return health_report
    except Exception as e:
        logger.error("Database health check failed: %s", e)
        health_report["services"]["database"] = "offline"
        health_report["error_details"] = str(e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=health_report
        )

# auth
@api.post("/auth/register", response_model=schema.User, tags=["Auth"])
def register_user(user: schema.UserCreate, response: Response, db: Session = Depends(database.obtain_db_session)):
    db_user = db.query(models.User).filter(models.User.email == user.email).first()
    if db_user:
        logger.info("Registration rejected, email already in use: %s", user.email)
        raise ValidationError("User already exists", fields=["email"])
    new_user = models.User(
        full_name=user.full_name,
        email=user.email,
        hashed_password=authentication.get_password_hash(user.password),
        role=user.role,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    authentication.set_session_cookie(response, authentication.issue_token(new_user.id, new_user.role))
    logger.info("Registered user %s (%s) as %s", new_user.id, new_user.email, new_user.role.value)
    return new_user

@api.post("/auth/login", response_model=schema.User, tags=["Auth"])
def login_handler(credentials: schema.UserLogin, response: Response, db: Session = Depends(database.obtain_db_session)):
    user = db.query(models.User).filter(models.User.email == credentials.email).first()
    if not user or not authentication.verify_password(credentials.password, user.hashed_password):
        logger.info("Failed login for %s", credentials.email)
        raise ValidationError("Invalid credentials")
    authentication.set_session_cookie(response, authentication.issue_token(user.id, user.role))
    logger.info("User %s logged in", user.id)
    return user

@api.get("/auth/me", response_model=schema.User, tags=["Auth"])
def read_current_user(identity: Identity = Depends(require_authenticated), db: Session = Depends(database.obtain_db_session)):
    user = db.get(models.User, identity.id)
    if user is None:
        raise AuthenticationError("Invalid token. Please log in again.")
    return user

@api.post("/auth/logout", tags=["Auth"])
def logout_handler(response: Response, identity: Identity = Depends(require_authenticated)):
    authentication.clear_session_cookie(response)
    logger.info("User %s logged out", identity.id)
    return {"message": "Logged out successfully"}

@api.put("/auth/password", tags=["Auth"])
def change_password(change: schema.PasswordChange, identity: Identity = Depends(require_authenticated), db: Session = Depends(database.obtain_db_session)):
    user = db.get(models.User, identity.id)
    if user is None:
        raise AuthenticationError("Invalid token. Please log in again.")
    if not authentication.verify_password(change.current_password, user.hashed_password):
        raise ValidationError("Current password is incorrect", fields=["current_password"])
    user.hashed_password = authentication.get_password_hash(change.new_password)
    db.commit()
    logger.info("User %s changed password", user.id)
    return {"message": "Password updated successfully"}

# products
@api.get("/products", response_model=List[schema.Product], tags=["Products"])
def read_products(db: Session = Depends(database.obtain_db_session), identity: Identity = Depends(require_authenticated)):
    return db.query(models.Product).options(joinedload(models.Product.supplier)).order_by(models.Product.id).all()

@api.post("/products", response_model=schema.Product, status_code=status.HTTP_201_CREATED, tags=["Products"])
def create_product(product: schema.ProductCreate, db: Session = Depends(database.obtain_db_session), identity: Identity = Depends(require_admin)):
    if db.query(models.Product).filter(models.Product.product_id == product.product_id).first():
        raise ValidationError("Product ID already exists", fields=["product_id"])
    if db.get(models.Supplier, product.supplier) is None:
        raise ValidationError("Invalid supplier", fields=["supplier"])
    values = product.model_dump(exclude={"supplier"})
    db_product = models.Product(**values, supplier_ref=product.supplier, status=models.ProductStatus.active)
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    logger.info("Product %s created by user %s with quantity %s", db_product.product_id, identity.id, db_product.quantity)
    return db_product

@api.get("/products/obsolete", response_model=List[schema.Product], tags=["Products"])
def read_obsolete_products(db: Session = Depends(database.obtain_db_session), identity: Identity = Depends(require_admin)):
    return lifecycle.list_obsolete(db)

@api.put("/products/{product_pk}/stockout", response_model=schema.Product, tags=["Products"])
def stock_out_product(product_pk: int, body: schema.StockOutRequest, db: Session = Depends(database.obtain_db_session), identity: Identity = Depends(require_authenticated)):
    logger.info("Stock out request from user %s (%s): product=%s quantity=%s", identity.id, identity.role.value, product_pk, body.quantity)
    return lifecycle.stock_out(db, product_pk, body.quantity)

@api.put("/products/{product_pk}/obsolete", response_model=schema.Product, tags=["Products"])
def mark_product_obsolete(product_pk: int, db: Session = Depends(database.obtain_db_session), identity: Identity = Depends(require_admin)):
    return lifecycle.mark_obsolete(db, product_pk)

@api.put("/products/{product_pk}/restore", response_model=schema.Product, tags=["Products"])
def restore_product(product_pk: int, db: Session = Depends(database.obtain_db_session), identity: Identity = Depends(require_admin)):
    return lifecycle.restore(db, product_pk)

# suppliers
@api.get("/suppliers", response_model=List[schema.Supplier], tags=["Suppliers"])
def read_suppliers(db: Session = Depends(database.obtain_db_session), identity: Identity = Depends(require_authenticated)):
    return db.query(models.Supplier).order_by(models.Supplier.created_at.desc(), models.Supplier.id.desc()).all()

@api.post("/suppliers", response_model=schema.Supplier, status_code=status.HTTP_201_CREATED, tags=["Suppliers"])
def create_supplier(supplier: schema.SupplierCreate, db: Session = Depends(database.obtain_db_session), identity: Identity = Depends(require_admin)):
    if db.query(models.Supplier).filter(models.Supplier.supplier_id == supplier.supplier_id).first():
        raise ValidationError("Supplier ID already exists", fields=["supplier_id"])
    db_sup = models.Supplier(**supplier.model_dump())
    db.add(db_sup)
    db.commit()
    db.refresh(db_sup)
    logger.info("Supplier %s created by user %s", db_sup.supplier_id, identity.id)
    return db_sup

# stock out log
@api.get("/stockout", response_model=List[schema.StockOut], tags=["Stock Out"])
def read_stock_out_records(db: Session = Depends(database.obtain_db_session), identity: Identity = Depends(require_authenticated)):
    return (
        db.query(models.StockOut)
        .options(joinedload(models.StockOut.product), joinedload(models.StockOut.recorder))
        .order_by(models.StockOut.timestamp.desc(), models.StockOut.id.desc())
        .all()
    )

@api.post("/stockout", response_model=schema.StockOut, status_code=status.HTTP_201_CREATED, tags=["Stock Out"])
def create_stock_out_record(record: schema.StockOutCreate, db: Session = Depends(database.obtain_db_session), identity: Identity = Depends(require_authenticated)):
    if db.get(models.Product, record.product) is None:
        raise ValidationError("Invalid product", fields=["product"])
    stock_out = models.StockOut(
        product_ref=record.product,
        quantity=record.quantity,
        timestamp=record.timestamp or models.utcnow(),
        recorded_by=identity.id,
    )
    db.add(stock_out)
    db.commit()
    db.refresh(stock_out)
    return stock_out

# app generate report
@api.get("/report/inventory", tags=["Reports"])
def get_inventory_report(db: Session = Depends(database.obtain_db_session), identity: Identity = Depends(require_authenticated)):
    query = (
        select(
            models.Product.product_id,
            models.Product.name,
            models.Supplier.name.label("supplier"),
            models.Product.quantity,
            models.Product.unit,
            models.Product.price,
            models.Product.status,
            models.Product.expiry_date,
        )
        .join(models.Supplier, models.Product.supplier_ref == models.Supplier.id)
        .order_by(models.Product.product_id)
    )
    df = pd.read_sql(query, db.bind)

    for column in ("unit", "status"):
        df[column] = df[column].map(lambda v: getattr(v, "value", v))
    df['total_value'] = df['price'] * df['quantity']

    stream = io.StringIO()
    df.to_csv(stream, index=False)
    response = StreamingResponse(iter([stream.getvalue()]), media_type="text/csv")
    response.headers["Content-Disposition"] = "attachment; filename=inventory_report.csv"
    return response

app.include_router(api)
