# utils/tokenJWT.py
from jose import jwt, JWTError, ExpiredSignatureError
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User
from utils.errors import UnauthorizedError

# Authorization scheme; missing headers are reported by us, not by FastAPI
bearer_scheme = HTTPBearer(auto_error=False)

def _encode(data: dict, secret: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret, algorithm=settings.ALGORITHM)

def _claims(user: User) -> dict:
    return {"sub": user.email, "id": user.id}

# Generate a new JWT access token
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    return _encode(
        data, settings.SECRET_KEY,
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )

# Generate a refresh token signed with its own secret
def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    return _encode(
        data, settings.REFRESH_SECRET_KEY,
        expires_delta or timedelta(minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES),
    )

def issue_tokens(user: User) -> dict:
    claims = _claims(user)
    return {"token": create_access_token(claims), "refresh_token": create_refresh_token(claims)}

def decode_refresh_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.REFRESH_SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise UnauthorizedError("Invalid refresh token", code="INVALID_TOKEN")

def _user_from_token(token: str, db: Session) -> User:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise UnauthorizedError("Token has expired", code="TOKEN_EXPIRED")
    except JWTError:
        raise UnauthorizedError("Invalid token", code="INVALID_TOKEN")

    user_id = payload.get("id")
    # Ensure the user id is present in the token payload
    if user_id is None:
        raise UnauthorizedError("Invalid or expired token", code="INVALID_TOKEN")

    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User not found", code="USER_NOT_FOUND")
    return user

# Retrieve the currently authenticated user based on the JWT token
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Authorization token required", code="MISSING_TOKEN")
    return _user_from_token(credentials.credentials, db)

# Same as get_current_user, but anonymous or broken credentials yield None
def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> Optional[User]:
    if credentials is None or not credentials.credentials:
        return None
    try:
        return _user_from_token(credentials.credentials, db)
    except UnauthorizedError:
        return None
