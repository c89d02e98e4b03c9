"""
Connection Registry API (admin only)
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from typing import List

from querypilot.database import get_db
from querypilot.models import User
from querypilot.schemas import ConnectionCreate, ConnectionResponse
from querypilot.core.rbac import require_admin
from querypilot.services.connection_service import connection_service

router = APIRouter()


@router.get("", response_model=List[ConnectionResponse])
async def list_connections(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """List every registered connection."""
    return connection_service.list_connections(db)


@router.post("", response_model=ConnectionResponse)
async def create_connection(
    data: ConnectionCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Register a connection.
    The target is tested and its schema read before anything is stored.
    """
    return connection_service.add_connection(db, data, current_user)


@router.get("/{connection_id}", response_model=ConnectionResponse)
async def get_connection(
    connection_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return connection_service.get_connection(db, connection_id)


@router.delete("/{connection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_connection(
    connection_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a connection together with every permission on it."""
    connection_service.delete_connection(db, connection_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{connection_id}/refresh-schema", response_model=ConnectionResponse)
async def refresh_schema(
    connection_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return connection_service.refresh_schema(db, connection_id, current_user)
