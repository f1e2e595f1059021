# ABOUTME: Account credentials and bearer tokens for the function gateway and profile store.
# ABOUTME: authenticate() checks credentials; get_current_user is the FastAPI dependency guarding every route.

from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlmodel import Session, select

from core.config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ALGORITHM,
    MAX_USERNAME_LENGTH,
    MIN_PASSWORD_LENGTH,
    MIN_USERNAME_LENGTH,
    SECRET_KEY,
)
from core.database import User, get_session

_http_bearer = HTTPBearer(auto_error=False)

# bcrypt only looks at the first 72 bytes.
_BCRYPT_MAX_PASSWORD_BYTES = 72

# Hash of a throwaway string; checked against when the username is unknown so
# login timing does not reveal which usernames exist.
DUMMY_PASSWORD_HASH = "$2b$12$DbmI/yRDB5j9Q8I7R9cb5.9jZPh/c32i4pA35t4vTf2jdq32n.L.S"


def _password_bytes(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_PASSWORD_BYTES]


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(_password_bytes(plain), bcrypt.gensalt()).decode("ascii")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(_password_bytes(plain), hashed.encode("ascii"))


def validate_credentials(username: str, password: str) -> str:
    """Check signup input and return the cleaned username. Raises ValueError with a user-facing message."""
    cleaned = username.strip()
    if len(cleaned) < MIN_USERNAME_LENGTH:
        raise ValueError("Username cannot be empty")
    if len(cleaned) > MAX_USERNAME_LENGTH:
        raise ValueError(f"Username must be at most {MAX_USERNAME_LENGTH} characters")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return cleaned


def authenticate(session: Session, username: str, password: str) -> User | None:
    """Return the user when the credentials match, else None. Always runs one bcrypt check."""
    user = session.exec(select(User).where(User.username == username.strip())).first()
    password_hash = user.password_hash if user else DUMMY_PASSWORD_HASH
    if not verify_password(password, password_hash) or user is None:
        return None
    return user


def create_access_token(user_id: UUID) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    return jwt.encode({"sub": str(user_id), "exp": expire}, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> UUID | None:
    """Return the user id carried by the token, or None if it is invalid or expired."""
    try:
        sub = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM]).get("sub")
        return UUID(sub) if sub is not None else None
    except (JWTError, ValueError):
        return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_http_bearer),
) -> User:
    """FastAPI dependency: require a Bearer token for an existing user, else 401."""
    if credentials is None:
        raise _unauthorized("Not authenticated")
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise _unauthorized("Invalid or expired token")
    with get_session() as session:
        user = session.get(User, user_id)
        if user is None:
            raise _unauthorized("User not found")
        return user
