import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, Request, Response
from fastapi.security import APIKeyCookie
from config import settings
from errors import AuthenticationError, AuthorizationError
from models import Role

logger = logging.getLogger(__name__)

crypto_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")
cookie_scheme = APIKeyCookie(name=settings.COOKIE_NAME, auto_error=False)


@dataclass(frozen=True)
class Identity:
    """Claims carried by a verified session token."""
    id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin


def get_password_hash(password):
    return crypto_ctx.hash(password)

def verify_password(plain_password, hashed_password):
    return crypto_ctx.verify(plain_password, hashed_password)

def issue_token(user_id: int, role: Role, expires_delta: Optional[timedelta] = None) -> str:
    issued_at = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.TOKEN_EXPIRE_MIN)
    to_encode = {
        "sub": str(user_id),
        "role": Role(role).value,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGO)

def verify_token(token: Optional[str]) -> Identity:
    """Decode a session token, raising AuthenticationError if it is missing,
    malformed, badly signed or expired."""
    if not token:
        raise AuthenticationError("Access denied. Please log in.")
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGO])
        return Identity(id=int(payload["sub"]), role=Role(payload["role"]))
    except (JWTError, KeyError, ValueError):
        raise AuthenticationError("Invalid token. Please log in again.")

def set_session_cookie(response: Response, token: str):
    response.set_cookie(
        key=settings.COOKIE_NAME,
        value=token,
        max_age=settings.TOKEN_EXPIRE_MIN * 60,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
    )

def clear_session_cookie(response: Response):
    # the token itself stays valid until it expires
    response.delete_cookie(
        key=settings.COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
    )

async def require_authenticated(request: Request, token: Optional[str] = Depends(cookie_scheme)) -> Identity:
    identity = verify_token(token)
    request.state.identity = identity
    return identity

async def require_admin(identity: Identity = Depends(require_authenticated)) -> Identity:
    if not identity.is_admin:
        logger.info("User %s denied admin access", identity.id)
        raise AuthorizationError("Admin access required")
    return identity
