import logging
from datetime import datetime, timedelta, timezone

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app import models
from app.config import ACCESS_TOKEN_EXPIRE_HOURS, ALGORITHM, SECRET_KEY
from app.db import get_db
from app.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# auto_error=False so a missing header goes through our own AuthenticationError
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user: models.User, expires_delta: timedelta = timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS)) -> str:
    """
    Issue a signed access token for a user.

    The payload carries the user's id, email and name; ``sub`` holds the id
    as a string and ``exp`` the expiry.
    """
    to_encode = {
        "sub": str(user.id),
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except JWTError:
        raise AuthenticationError("Token verification failed")


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> models.User:
    """
    Resolve the bearer token on the request to a user.

    :raises AuthenticationError: if the token is missing, invalid or expired,
        or names a user that no longer exists.
    """
    if credentials is None:
        raise AuthenticationError("No token provided")

    payload = decode_access_token(credentials.credentials)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthenticationError("Token verification failed")

    user = db.get(models.User, user_id)
    if user is None:
        logger.warning(f"Token presented for unknown user {user_id}")
        raise AuthenticationError("User not found")
    return user
