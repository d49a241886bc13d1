from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import uuid

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.orm import Session

from orderflow.config import get_settings
from orderflow.models.user import User, get_db
from orderflow.utils.errors import Unauthorized

logger = logging.getLogger(__name__)

http_bearer = HTTPBearer(auto_error=False)


# ===== JWT helpers =====
def create_access_token(subject, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    jti = uuid.uuid4().hex
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {"sub": str(subject), "exp": expire, "iat": now, "nbf": now, "jti": jti}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise Unauthorized("Invalid or expired token")


def get_current_user(
    token: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to a user row.

    The row is re-read on every request so role changes apply immediately.
    """
    if not token or not token.credentials:
        raise Unauthorized("Not authenticated")
    payload = decode_access_token(token.credentials)
    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise Unauthorized("Invalid token payload")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning("Token for unknown user %s rejected", user_id)
        raise Unauthorized("Invalid user")
    return user
