"""
Specification tables attached to products.

A specification is either a grid/matrix table (header rows plus body rows,
cells may span) or a single image. Content is stored as the camelCase JSON
document the storefront renders.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .audit import record_audit
from .auth import CurrentUser, require_admin
from .database import get_db
from .exceptions import InvalidSpecificationContent
from .models import ActionType, Product, ProductSpecification, utcnow
from .schemas import (
    DataResponse, MessageResponse, ProductSpecification as SpecificationSchema,
    SpecificationContentAdapter, SpecificationCreate, SpecificationUpdate, check_content_type,
)
from .utils import get_or_404

specification_router = APIRouter()

@specification_router.get("", response_model=DataResponse[List[SpecificationSchema]])
async def get_specifications(
    product_id: UUID = Query(..., alias="productId"),
    db: Session = Depends(get_db),
):
    specifications = db.scalars(
        select(ProductSpecification)
        .where(
            ProductSpecification.product_id == product_id,
            ProductSpecification.is_active.is_(True),
        )
        .order_by(ProductSpecification.display_order, ProductSpecification.created_at)
    ).all()
    return DataResponse(data=specifications)

@specification_router.post("", response_model=DataResponse[SpecificationSchema], status_code=201)
async def create_specification(
    body: SpecificationCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    get_or_404(db, Product, body.product_id, "Product")
    try:
        specification = ProductSpecification(
            product_id=body.product_id,
            title=body.title,
            type=body.type,
            content=body.content.model_dump(by_alias=True, exclude_none=True),
            display_order=body.display_order,
        )
        db.add(specification)
        db.flush()
        record_audit(
            db, current_user, ActionType.CREATE, "specification", specification.id,
            {"productId": str(body.product_id), "title": body.title}, request,
        )
        db.commit()
        db.refresh(specification)
    except Exception:
        db.rollback()
        raise
    return DataResponse(data=specification, message="Specification created successfully")

@specification_router.patch("/{specification_id}", response_model=DataResponse[SpecificationSchema])
async def update_specification(
    specification_id: UUID,
    body: SpecificationUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    specification = get_or_404(db, ProductSpecification, specification_id, "Specification")
    # A one-sided change is checked against the half already stored
    if (body.type is None) != (body.content is None):
        content = body.content
        if content is None:
            content = SpecificationContentAdapter.validate_python(specification.content)
        try:
            check_content_type(body.type or specification.type, content)
        except ValueError as e:
            raise InvalidSpecificationContent(str(e))

    changes = body.model_dump(exclude_unset=True, exclude={"content"})
    if body.content is not None:
        changes["content"] = body.content.model_dump(by_alias=True, exclude_none=True)

    try:
        for key, value in changes.items():
            setattr(specification, key, value)
        specification.updated_at = utcnow()
        record_audit(
            db, current_user, ActionType.UPDATE, "specification", specification.id, {"fields": sorted(changes)}, request
        )
        db.commit()
        db.refresh(specification)
    except Exception:
        db.rollback()
        raise
    return DataResponse(data=specification, message="Specification updated successfully")

@specification_router.delete("/{specification_id}", response_model=MessageResponse)
async def delete_specification(
    specification_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    specification = get_or_404(db, ProductSpecification, specification_id, "Specification")
    try:
        record_audit(db, current_user, ActionType.DELETE, "specification", specification.id, None, request)
        db.delete(specification)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return MessageResponse(message="Specification deleted successfully")
