"""
User Listing API (admin only)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from querypilot.database import get_db
from querypilot.models import User
from querypilot.schemas import UserResponse
from querypilot.core.rbac import require_admin

router = APIRouter()


@router.get("", response_model=List[UserResponse])
async def list_users(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """List users, so admins can pick grant targets."""
    return db.query(User).order_by(User.id).all()
