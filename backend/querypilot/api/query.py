"""
Query API Routes
Natural-language questions against accessible connections
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from querypilot.database import get_db
from querypilot.models import User
from querypilot.schemas import ConnectionSummary, QueryRequest, QueryResponse
from querypilot.core.rbac import get_current_user
from querypilot.security import access_gateway
from querypilot.services.ai_service import SqlGenerator, get_sql_generator
from querypilot.services.query_service import query_service

router = APIRouter()


@router.get("/connections", response_model=List[ConnectionSummary])
async def accessible_connections(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Connections the caller may query, re-derived from current grants."""
    return access_gateway.list_accessible_connections(db, current_user)


@router.post("/ask", response_model=QueryResponse)
async def ask(
    request: QueryRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    generator: SqlGenerator = Depends(get_sql_generator)
):
    """
    Generate, check and run SQL for a question.

    A statement that fails the safety check still returns 200, with
    safetyCheck BLOCKED and no rows.
    """
    return await query_service.process_query(db, current_user, request, generator)
