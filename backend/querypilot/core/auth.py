"""
Authentication Service
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import jwt, JWTError
from sqlalchemy.orm import Session
import structlog

from querypilot.config import settings
from querypilot.core.exceptions import AuthenticationError, ConflictError
from querypilot.models import User, UserRole
from querypilot.schemas import AuthResponse, TokenPayload

logger = structlog.get_logger()


def create_access_token(user: User) -> str:
    """Create JWT access token."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user.id),
        "username": user.username,
        "role": user.role,
        "exp": expire,
        "type": "access"
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str, token_type: str = "access") -> Optional[TokenPayload]:
    """Verify JWT token and return payload."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        if payload.get("type") != token_type:
            return None
        return TokenPayload(
            sub=int(payload["sub"]),
            username=payload["username"],
            role=payload["role"],
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            type=payload["type"]
        )
    except (JWTError, KeyError, ValueError):
        return None


def build_auth_response(user: User) -> AuthResponse:
    """Login and register both end in the same {token, username, role} shape."""
    return AuthResponse(
        token=create_access_token(user),
        username=user.username,
        role=user.role
    )


def authenticate_user(db: Session, username: str, password: str) -> User:
    """Authenticate user by username and password."""
    user = get_user_by_username(db, username)
    if not user or not user.verify_password(password):
        raise AuthenticationError("Invalid username or password")

    user.last_login = datetime.now(timezone.utc)
    db.commit()
    return user


def register_user(db: Session, username: str, password: str) -> User:
    """Create an ANALYST account. Registration never creates admins."""
    if get_user_by_username(db, username):
        raise ConflictError(f"Username already exists: {username}")

    user = User(
        username=username,
        hashed_password=User.hash_password(password),
        role=UserRole.ANALYST.value
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user_registered", user_id=user.id, username=user.username)
    return user


def ensure_admin_user(db: Session, username: str, password: str) -> User:
    """Create the bootstrap admin if no user with that name exists yet."""
    user = get_user_by_username(db, username)
    if user:
        return user

    user = User(
        username=username,
        hashed_password=User.hash_password(password),
        role=UserRole.ADMIN.value
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("bootstrap_admin_created", user_id=user.id, username=username)
    return user


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    """Get user by ID."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    """Get user by username."""
    return db.query(User).filter(User.username == username).first()
