"""
Authentication API Routes
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from querypilot.database import get_db
from querypilot.schemas import AuthRequest, AuthResponse, UserResponse
from querypilot.models import User, AuditActionType
from querypilot.core.auth import authenticate_user, register_user, build_auth_response
from querypilot.core.exceptions import AuthenticationError
from querypilot.core.rbac import get_current_user
from querypilot.core.audit import AuditLogger

router = APIRouter()


@router.post("/login", response_model=AuthResponse)
async def login(credentials: AuthRequest, db: Session = Depends(get_db)):
    """Login and get access token."""
    auditor = AuditLogger(db)
    try:
        user = authenticate_user(db, credentials.username, credentials.password)
    except AuthenticationError:
        auditor.log_login(credentials.username, success=False)
        raise

    auditor.log_login(user.username, user=user)
    return build_auth_response(user)


@router.post("/register", response_model=AuthResponse)
async def register(credentials: AuthRequest, db: Session = Depends(get_db)):
    """Register a new analyst and log them in."""
    user = register_user(db, credentials.username, credentials.password)

    AuditLogger(db).log(
        action=AuditActionType.USER_REGISTER,
        user=user,
        resource_type="user",
        resource_id=user.id
    )
    return build_auth_response(user)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current user info."""
    return current_user
