# auth.py
"""
Bearer-token authentication for catalog routes.

Tokens are issued elsewhere; here they are only verified and resolved to a
`Principal` from the "user" collection.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from bson import ObjectId
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel
from pymongo.database import Database

from database import get_db
from errors import ERROR_NO_TOKEN, ERROR_NOT_ADMIN, ERROR_TOKEN_FAILED
from logger import get_logger
from settings import settings

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class Principal(BaseModel):
    """The authenticated user attached to a request."""
    id: str
    name: str
    is_admin: bool = False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Creates a JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.JWT_EXPIRY_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def authenticate(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Database = Depends(get_db),
) -> Principal:
    """Dependency resolving the bearer token to the current user."""
    if credentials is None:
        raise _unauthorized(ERROR_NO_TOKEN)

    try:
        payload = jwt.decode(
            credentials.credentials, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        logger.warning("Rejected request with an invalid token")
        raise _unauthorized(ERROR_TOKEN_FAILED)

    user_id = payload.get("user_id")
    if not user_id or not ObjectId.is_valid(user_id):
        raise _unauthorized(ERROR_TOKEN_FAILED)

    user = db["user"].find_one({"_id": ObjectId(user_id)})
    if user is None:
        logger.warning("Token refers to unknown user %s", user_id)
        raise _unauthorized(ERROR_TOKEN_FAILED)

    return Principal(
        id=str(user["_id"]),
        name=user.get("name", ""),
        is_admin=bool(user.get("isAdmin", False)),
    )


def authenticate_admin(principal: Principal = Depends(authenticate)) -> Principal:
    """Dependency allowing only admins through."""
    if not principal.is_admin:
        logger.warning("User %s attempted an admin operation", principal.id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ERROR_NOT_ADMIN)
    return principal
