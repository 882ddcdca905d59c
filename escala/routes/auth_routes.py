# escala/routes/auth_routes.py
"""
Authentication routes: login, logout, registration, current user.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from escala.auth.auth import (
    authenticate_user,
    clear_auth_cookie,
    create_access_token,
    get_admin_user,
    get_current_user,
    get_current_user_optional,
    register_user,
    set_auth_cookie,
)
from escala.core.constants import DEFAULT_PASSWORD
from escala.core.logging_config import get_logger
from escala.core.request_logging import log_auth_event
from escala.core.sentry_config import add_breadcrumb, clear_user_context, set_user_context
from escala.database.database import User, get_db
from escala.routes.shared import LoginRequest, UserCreate, UserOut, record_audit

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/login")
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: Session = Depends(get_db),
):
    """Check credentials; sets the auth cookie and returns the token."""
    user = authenticate_user(db, credentials.username, credentials.password)
    if not user:
        log_auth_event(
            event_type="login",
            username=credentials.username,
            success=False,
            details={"ip": _client_ip(request)},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    log_auth_event(
        event_type="login",
        username=user.username,
        user_id=user.id,
        success=True,
        details={"ip": _client_ip(request)},
    )
    set_user_context(user_id=user.id, username=user.username, email=user.email)
    add_breadcrumb(message=f"User {user.username} logged in", category="auth")
    record_audit(db, user, "auth", "login", f"{user.username} logged in")

    access_token = create_access_token(data={"sub": str(user.id)})
    set_auth_cookie(response, access_token)
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": UserOut.model_validate(user),
    }


@router.post("/logout")
async def logout(response: Response, current_user: User | None = Depends(get_current_user_optional)):
    if current_user:
        log_auth_event(
            event_type="logout",
            username=current_user.username,
            user_id=current_user.id,
            success=True,
        )
        clear_user_context()
    clear_auth_cookie(response)
    return {"logged_out": True}


@router.get("/me", response_model=UserOut)
async def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def register(
    payload: UserCreate,
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
):
    """Admin: create a login account. A taken username gives 409."""
    user = register_user(
        db,
        username=payload.username,
        password=payload.password or DEFAULT_PASSWORD,
        name=payload.name,
        role=payload.role,
        employee_id=payload.employee_id,
        email=payload.email,
    )
    if user is False:
        log_auth_event(
            event_type="register",
            username=payload.username,
            success=False,
            details={"reason": "username taken", "by": current_user.username},
        )
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

    log_auth_event(
        event_type="register",
        username=user.username,
        user_id=user.id,
        success=True,
        details={"role": user.role.value, "by": current_user.username},
    )
    record_audit(db, current_user, "users", "create", f"Created user {user.username} ({user.role.value})")
    return user


@router.get("/users", response_model=list[UserOut])
async def list_users(
    current_user: User = Depends(get_admin_user),
    db: Session = Depends(get_db),
):
    """Admin: list all accounts."""
    return db.query(User).order_by(User.id).all()
