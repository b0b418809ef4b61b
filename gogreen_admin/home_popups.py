from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from .audit import record_audit
from .auth import CurrentUser, require_admin
from .database import get_db
from .models import ActionType, HomePopup, utcnow
from .schemas import DataResponse, HomePopup as HomePopupSchema, HomePopupCreate, MessageResponse
from .utils import column_values, get_or_404

home_popup_router = APIRouter()

@home_popup_router.get("", response_model=DataResponse[List[HomePopupSchema]])
async def get_active_popups(db: Session = Depends(get_db)):
    now = utcnow()
    popups = db.scalars(
        select(HomePopup)
        .where(
            HomePopup.is_active.is_(True),
            or_(HomePopup.start_date.is_(None), HomePopup.start_date <= now),
            or_(HomePopup.end_date.is_(None), HomePopup.end_date >= now),
        )
        .order_by(HomePopup.created_at.desc())
    ).all()
    return DataResponse(data=popups)

@home_popup_router.post("/admin", response_model=DataResponse[HomePopupSchema], status_code=201)
async def create_popup(
    body: HomePopupCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    try:
        popup = HomePopup(**column_values(body))
        db.add(popup)
        db.flush()
        record_audit(db, current_user, ActionType.CREATE, "home_popup", popup.id, {"imageUrl": popup.image_url}, request)
        db.commit()
        db.refresh(popup)
    except Exception:
        db.rollback()
        raise
    return DataResponse(data=popup)

@home_popup_router.delete("/{popup_id}", response_model=MessageResponse)
async def delete_popup(
    popup_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    popup = get_or_404(db, HomePopup, popup_id, "Popup")
    try:
        record_audit(db, current_user, ActionType.DELETE, "home_popup", popup.id, None, request)
        db.delete(popup)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return MessageResponse(message="Popup deleted successfully")
