# escala/auth/auth.py
"""
Authentication and authorization utilities.
"""

import os
import warnings
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from escala.core.config import IS_PRODUCTION
from escala.core.constants import ROLE_PERMISSIONS, UserRole
from escala.core.request_logging import log_security_event
from escala.core.sentry_config import set_user_context
from escala.database.database import User, get_db

_DEFAULT_SECRET = "escala-dev-secret-change-this-in-production"

SECRET_KEY = os.getenv("SECRET_KEY", _DEFAULT_SECRET)
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 7  # 7 days
AUTH_COOKIE = "access_token"

if SECRET_KEY == _DEFAULT_SECRET:
    if IS_PRODUCTION:
        raise RuntimeError("SECRET_KEY must be set in production!")
    warnings.warn(
        "Using default SECRET_KEY! Set SECRET_KEY environment variable for production.",
        RuntimeWarning,
        stacklevel=2,
    )

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

security = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token. `data["sub"]` carries the user id as a string."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> dict | None:
    """Decode and validate a JWT token; None when invalid or expired."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == username).first()


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def authenticate_user(db: Session, username: str, password: str) -> User | None:
    """Return the active user matching the credentials, or None."""
    user = get_user_by_username(db, username)
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def register_user(
    db: Session,
    username: str,
    password: str,
    name: str,
    role: UserRole = UserRole.TEACHER,
    employee_id: str | None = None,
    email: str | None = None,
) -> User | bool:
    """
    Create a login account.

    Returns:
        The new User, or False when the username is already taken
    """
    if get_user_by_username(db, username) is not None:
        return False
    user = User(
        username=username,
        password_hash=get_password_hash(password),
        name=name,
        role=role,
        employee_id=employee_id,
        email=email,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _token_from_request(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    if credentials is not None:
        return credentials.credentials
    token = request.cookies.get(AUTH_COOKIE)
    if token and token.startswith("Bearer "):
        token = token[7:]
    return token or None


async def get_current_user_optional(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User | None:
    """Current user from a Bearer header or the auth cookie; None if absent or invalid."""
    token = _token_from_request(request, credentials)
    if not token:
        return None

    payload = decode_token(token)
    if payload is None or payload.get("sub") is None:
        return None

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        return None

    user = get_user_by_id(db, user_id)
    if user is None or not user.is_active:
        return None
    request.state.user = user
    return user


async def get_current_user(user: User | None = Depends(get_current_user_optional)) -> User:
    """Get current authenticated user. Raises 401 if not authenticated."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    set_user_context(user_id=user.id, username=user.username, email=user.email)
    return user


def has_permission(user: User, permission: str) -> bool:
    return permission in ROLE_PERMISSIONS.get(user.role, frozenset())


def require_permission(permission: str):
    """Dependency factory: current user holding `permission`, else 403."""

    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not has_permission(current_user, permission):
            log_security_event(
                "permission_denied",
                {"user_id": current_user.id, "username": current_user.username, "permission": permission},
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Permission required: {permission}")
        return current_user

    return dependency


async def get_admin_user(current_user: User = Depends(get_current_user)) -> User:
    """Get current user and verify admin role."""
    if current_user.role != UserRole.ADMIN:
        log_security_event("admin_required", {"user_id": current_user.id, "username": current_user.username})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=AUTH_COOKIE,
        value=f"Bearer {token}",
        httponly=True,
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
        secure=IS_PRODUCTION,
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(key=AUTH_COOKIE)
