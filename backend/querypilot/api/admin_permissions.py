"""
Connection Permissions API
Manage which analysts may query which connection
"""
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session
from typing import List

from querypilot.database import get_db
from querypilot.models import User
from querypilot.schemas import PermissionRequest, PermissionResponse
from querypilot.core.rbac import require_admin
from querypilot.services.permission_service import permission_service

router = APIRouter()


@router.post("", response_model=PermissionResponse)
async def grant_permission(
    request: PermissionRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Grant a user access to a connection. Granting twice returns the same grant."""
    return permission_service.grant(db, request.user_id, request.connection_id, current_user)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_permission(
    user_id: int = Query(..., alias="userId"),
    connection_id: int = Query(..., alias="connectionId"),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Revoke a grant. Succeeds whether or not the grant existed."""
    permission_service.revoke(db, user_id, connection_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/user/{user_id}", response_model=List[PermissionResponse])
async def permissions_by_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return permission_service.list_by_user(db, user_id)


@router.get("/connection/{connection_id}", response_model=List[PermissionResponse])
async def permissions_by_connection(
    connection_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return permission_service.list_by_connection(db, connection_id)
