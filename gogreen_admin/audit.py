"""
Audit trail of admin mutations.
"""

import math
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .auth import CurrentUser, require_admin
from .config import Settings, get_settings
from .database import get_db
from .logging_config import audit_log, log_db_operation
from .models import ActionType, AuditLog
from .schemas import AuditLogEntry, AuditLogPage

audit_router = APIRouter()

def record_audit(
    db: Session,
    user: CurrentUser,
    action: ActionType,
    resource_type: str,
    resource_id: Any = None,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> AuditLog:
    """
    Stage an audit row in the caller's transaction and emit the audit event.
    The caller commits, so the entry lands together with the change it describes.
    """
    entry = AuditLog(
        user_id=user.user_id,
        action=action,
        resource_type=resource_type,
        resource_id=str(resource_id) if resource_id is not None else None,
        details=details or {},
        ip_address=request.client.host if request and request.client else None,
        user_agent=request.headers.get("user-agent") if request else None,
    )
    db.add(entry)
    log_db_operation("insert", AuditLog.__tablename__, resource_type=resource_type)
    audit_log(
        action=f"{resource_type}_{action.value}",
        user_id=user.user_id,
        resource_id=entry.resource_id,
    )
    return entry

@audit_router.get("", response_model=AuditLogPage)
async def list_audit_logs(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=500),
    resource_type: Optional[str] = Query(None, alias="resourceType"),
    user_id: Optional[UUID] = Query(None, alias="userId"),
    action: Optional[ActionType] = None,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
    settings: Settings = Depends(get_settings),
):
    limit = limit or settings.AUDIT_PAGE_SIZE

    filters = []
    if resource_type:
        filters.append(AuditLog.resource_type == resource_type)
    if user_id:
        filters.append(AuditLog.user_id == user_id)
    if action:
        filters.append(AuditLog.action == action)

    total = db.scalar(select(func.count()).select_from(AuditLog).where(*filters))
    entries = db.scalars(
        select(AuditLog)
        .where(*filters)
        .order_by(AuditLog.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    return AuditLogPage(
        data=[AuditLogEntry.model_validate(e) for e in entries],
        total=total,
        page=page,
        pages=math.ceil(total / limit) if total else 0,
    )
