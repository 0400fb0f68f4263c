import logging
from typing import List, Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class InventoryError(Exception):
    """Base for every error reported to API callers as a JSON body."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message, "type": type(self).__name__}
        body.update(self.details)
        return body


class AuthenticationError(InventoryError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(InventoryError):
    status_code = status.HTTP_403_FORBIDDEN


class ValidationError(InventoryError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, fields: Optional[List[str]] = None, **details):
        if fields:
            details["fields"] = fields
        super().__init__(message, **details)


class NotFound(InventoryError):
    status_code = status.HTTP_404_NOT_FOUND


class BusinessRuleError(InventoryError):
    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientStock(BusinessRuleError):
    def __init__(self, available: int):
        super().__init__(f"Insufficient stock! Only {available} available", available=available)
        self.available = available


class InvalidQuantity(BusinessRuleError):
    def __init__(self, message: str = "Quantity must be a positive number"):
        super().__init__(message)


class ServerError(InventoryError):
    pass


# status code -> error class, fallback when a body carries no type
ERRORS_BY_STATUS = {
    status.HTTP_400_BAD_REQUEST: ValidationError,
    status.HTTP_401_UNAUTHORIZED: AuthenticationError,
    status.HTTP_403_FORBIDDEN: AuthorizationError,
    status.HTTP_404_NOT_FOUND: NotFound,
}

ERRORS_BY_TYPE = {
    cls.__name__: cls
    for cls in (AuthenticationError, AuthorizationError, ValidationError, NotFound,
                BusinessRuleError, InsufficientStock, InvalidQuantity, ServerError)
}


def error_from_response(status_code: int, body: dict) -> InventoryError:
    """Rebuild the server-side error from a JSON error body."""
    body = dict(body)
    message = body.pop("error", None) or "Server error"
    error_cls = ERRORS_BY_TYPE.get(body.pop("type", None))
    if error_cls is InsufficientStock or "available" in body:
        return InsufficientStock(body["available"])
    if error_cls is InvalidQuantity:
        return InvalidQuantity(message)
    if error_cls is None:
        error_cls = ERRORS_BY_STATUS.get(status_code, ServerError)
    return error_cls(message, **body)


async def inventory_error_handler(request: Request, exc: InventoryError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        if loc:
            fields.append(".".join(loc))
    error = ValidationError(
        "Validation error",
        fields=fields,
        details=[{"field": ".".join(str(p) for p in e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()],
    )
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    error = ValidationError("Duplicate or invalid value")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": "Server error", "type": "ServerError"})


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(InventoryError, inventory_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
