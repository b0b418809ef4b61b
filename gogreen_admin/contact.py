from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .audit import record_audit
from .auth import CurrentUser, require_admin
from .config import Settings, get_settings
from .database import get_db
from .logging_config import log_business_operation
from .models import ActionType, ContactSubmission
from .schemas import (
    ContactCreate, ContactStatusUpdate, ContactSubmission as ContactSchema, DataResponse, MessageResponse,
)
from .utils import column_values, get_or_404

contact_router = APIRouter()

@contact_router.post("", response_model=MessageResponse)
async def submit_contact_form(body: ContactCreate, db: Session = Depends(get_db)):
    try:
        submission = ContactSubmission(**column_values(body))
        db.add(submission)
        db.commit()
    except Exception:
        db.rollback()
        raise

    log_business_operation("contact_submitted", submission_id=submission.id)
    return MessageResponse(message="Message sent successfully")

# The admin inbox expects a bare array rather than the usual envelope
@contact_router.get("", response_model=List[ContactSchema])
async def get_contact_submissions(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
    settings: Settings = Depends(get_settings),
):
    limit = limit or settings.CONTACT_PAGE_SIZE
    return db.scalars(
        select(ContactSubmission)
        .order_by(ContactSubmission.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

@contact_router.patch("/{submission_id}", response_model=DataResponse[ContactSchema])
async def update_contact_status(
    submission_id: UUID,
    body: ContactStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    submission = get_or_404(db, ContactSubmission, submission_id, "Contact submission")
    try:
        submission.status = body.status
        record_audit(
            db, current_user, ActionType.UPDATE, "contact_submission", submission.id, {"status": body.status}, request
        )
        db.commit()
        db.refresh(submission)
    except Exception:
        db.rollback()
        raise
    return DataResponse(data=submission)

@contact_router.delete("/{submission_id}", response_model=MessageResponse)
async def delete_contact_submission(
    submission_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    submission = get_or_404(db, ContactSubmission, submission_id, "Contact submission")
    try:
        record_audit(db, current_user, ActionType.DELETE, "contact_submission", submission.id, None, request)
        db.delete(submission)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return MessageResponse(message="Deleted successfully")
