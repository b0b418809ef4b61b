"""
Editor change requests and their admin review.

Editors submit a create, update or delete against a catalog or content
resource. The change is applied only when an admin approves it; a reviewed
change never moves again.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models, schemas
from .audit import record_audit
from .auth import CurrentUser, require_admin, require_editor
from .database import get_db
from .exceptions import ConflictError, InvalidStateTransition, ResourceNotFoundError
from .logging_config import log_business_operation
from .models import ActionType, ChangeStatus, utcnow
from .schemas import DataResponse, PendingChange as PendingChangeSchema
from .utils import column_values, ensure_unique_slug, get_or_404, revalidate_frontend, update_fields
from .youtube import REVALIDATION_TAG as VIDEO_REVALIDATION_TAG, check_video_change

pending_change_router = APIRouter()

@dataclass(frozen=True)
class ChangeTarget:
    model: Type
    create_schema: Type[BaseModel]
    update_schema: Type[BaseModel]
    output_schema: Type[BaseModel]
    label: str
    key_type: Type = UUID
    check: Optional[Callable[[BaseModel], None]] = None
    revalidation_tag: Optional[str] = None

    def parse_id(self, resource_id: str):
        try:
            return self.key_type(resource_id)
        except (TypeError, ValueError):
            raise ResourceNotFoundError(self.label, resource_id)

CHANGE_TARGETS: Dict[str, ChangeTarget] = {
    "category": ChangeTarget(
        models.Category, schemas.CategoryCreate, schemas.CategoryUpdate, schemas.Category, "Category"
    ),
    "subcategory": ChangeTarget(
        models.Subcategory, schemas.SubcategoryCreate, schemas.SubcategoryUpdate, schemas.Subcategory, "Subcategory"
    ),
    "product": ChangeTarget(
        models.Product, schemas.ProductCreate, schemas.ProductUpdate, schemas.Product, "Product"
    ),
    "post": ChangeTarget(
        models.Post, schemas.PostCreate, schemas.PostUpdate, schemas.Post, "Post", key_type=int
    ),
    "youtube_video": ChangeTarget(
        models.YoutubeVideo, schemas.YoutubeVideoCreate, schemas.YoutubeVideoUpdate, schemas.YoutubeVideo, "YouTube video",
        check=check_video_change, revalidation_tag=VIDEO_REVALIDATION_TAG,
    ),
}

def _target_for(resource_type: str) -> ChangeTarget:
    target = CHANGE_TARGETS.get(resource_type)
    if target is None:
        raise ConflictError(f"Unsupported resource type: {resource_type}")
    return target

def _validated(target: ChangeTarget, schema: Type[BaseModel], data: Dict[str, Any]) -> BaseModel:
    try:
        payload = schema.model_validate(data)
    except ValidationError as e:
        raise ConflictError(f"Invalid change data: {e.errors(include_url=False)}")
    if target.check is not None:
        target.check(payload)
    return payload

def snapshot(target: ChangeTarget, instance) -> Dict[str, Any]:
    return target.output_schema.model_validate(instance).model_dump(mode="json", by_alias=True)

def apply_change(db: Session, change: models.PendingChange) -> Optional[Any]:
    """
    Apply an approved change to its resource.

    Returns the affected row, or None for deletes. Sets `previous_data` on the
    change for updates and deletes.
    """
    target = _target_for(change.resource_type)

    if change.action == ActionType.CREATE:
        payload = _validated(target, target.create_schema, change.change_data)
        values = {key: value for key, value in column_values(payload).items() if value is not None}
        if "slug" in values:
            ensure_unique_slug(db, target.model, values["slug"], target.label)
        if target.model is models.Post and values.get("published"):
            values["published_at"] = utcnow()
        instance = target.model(**values)
        db.add(instance)
        db.flush()
        change.resource_id = str(instance.id)
        return instance

    instance = get_or_404(db, target.model, target.parse_id(change.resource_id), target.label)
    change.previous_data = snapshot(target, instance)

    if change.action == ActionType.DELETE:
        db.delete(instance)
        return None

    payload = _validated(target, target.update_schema, change.change_data)
    if getattr(payload, "slug", None):
        ensure_unique_slug(db, target.model, payload.slug, target.label, exclude_id=instance.id)
    applied = update_fields(instance, payload)
    if target.model is models.Post and applied.get("published"):
        instance.published_at = utcnow()
    return instance

def _lock_pending(db: Session, change_id: UUID) -> models.PendingChange:
    change = db.scalars(
        select(models.PendingChange)
        .where(models.PendingChange.id == change_id)
        .with_for_update()
    ).first()
    if change is None:
        raise ResourceNotFoundError("Pending change")
    if change.status != ChangeStatus.PENDING:
        raise InvalidStateTransition(f"Change has already been {change.status.value}")
    return change

@pending_change_router.get("", response_model=DataResponse[List[PendingChangeSchema]])
async def list_pending_changes(
    status: Optional[ChangeStatus] = None,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_editor),
):
    statement = select(models.PendingChange).order_by(models.PendingChange.created_at.desc())
    if not current_user.is_admin:
        statement = statement.where(models.PendingChange.user_id == current_user.user_id)
    if status:
        statement = statement.where(models.PendingChange.status == status)
    return DataResponse(data=db.scalars(statement).all())

@pending_change_router.post("", response_model=DataResponse[PendingChangeSchema], status_code=201)
async def create_pending_change(
    body: schemas.PendingChangeCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_editor),
):
    target = _target_for(body.resource_type)
    schema = target.create_schema if body.action == "create" else target.update_schema
    if body.action != "delete":
        _validated(target, schema, body.change_data)

    try:
        change = models.PendingChange(
            user_id=current_user.user_id,
            action=ActionType(body.action),
            resource_type=body.resource_type,
            resource_id=body.resource_id,
            change_data=body.change_data,
        )
        db.add(change)
        db.flush()
        record_audit(
            db, current_user, ActionType.CREATE, "pending_change", change.id,
            {"action": body.action, "resourceType": body.resource_type}, request,
        )
        db.commit()
        db.refresh(change)
    except Exception:
        db.rollback()
        raise

    log_business_operation("pending_change_submitted", change_id=change.id, resource_type=change.resource_type)
    return DataResponse(data=change, message="Change submitted for review")

@pending_change_router.post("/{change_id}/approve", response_model=DataResponse[PendingChangeSchema])
async def approve_pending_change(
    change_id: UUID,
    request: Request,
    review: Optional[schemas.PendingChangeReview] = None,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    try:
        change = _lock_pending(db, change_id)
        apply_change(db, change)
        change.status = ChangeStatus.APPROVED
        change.reviewed_by = current_user.user_id
        change.reviewed_at = utcnow()
        change.review_notes = review.review_notes if review else None
        change.updated_at = utcnow()
        record_audit(
            db, current_user, ActionType.APPROVE, change.resource_type, change.resource_id,
            {"pendingChangeId": str(change.id), "action": change.action.value}, request,
        )
        db.commit()
        db.refresh(change)
    except Exception:
        db.rollback()
        raise

    log_business_operation("pending_change_approved", change_id=change.id)
    target = CHANGE_TARGETS[change.resource_type]
    if target.revalidation_tag:
        await revalidate_frontend(target.revalidation_tag)
    return DataResponse(data=change, message="Change approved")

@pending_change_router.post("/{change_id}/reject", response_model=DataResponse[PendingChangeSchema])
async def reject_pending_change(
    change_id: UUID,
    request: Request,
    review: Optional[schemas.PendingChangeReview] = None,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    try:
        change = _lock_pending(db, change_id)
        change.status = ChangeStatus.REJECTED
        change.reviewed_by = current_user.user_id
        change.reviewed_at = utcnow()
        change.review_notes = review.review_notes if review else None
        change.updated_at = utcnow()
        record_audit(
            db, current_user, ActionType.REJECT, change.resource_type, change.resource_id,
            {"pendingChangeId": str(change.id)}, request,
        )
        db.commit()
        db.refresh(change)
    except Exception:
        db.rollback()
        raise

    log_business_operation("pending_change_rejected", change_id=change.id)
    return DataResponse(data=change, message="Change rejected")
