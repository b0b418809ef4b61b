from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .audit import record_audit
from .auth import CurrentUser, require_admin
from .database import get_db
from .models import ActionType, Category, Subcategory
from .schemas import (
    Category as CategorySchema, CategoryCreate, CategoryUpdate, DataResponse, MessageResponse,
    Subcategory as SubcategorySchema, SubcategoryCreate, SubcategoryUpdate,
)
from .utils import column_values, ensure_unique_slug, get_or_404, update_fields

category_router = APIRouter()
subcategory_router = APIRouter()

# Categories

@category_router.get("", response_model=DataResponse[List[CategorySchema]])
async def get_categories(
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: Session = Depends(get_db),
):
    statement = select(Category).order_by(Category.display_order, Category.name)
    if not include_inactive:
        statement = statement.where(Category.is_active.is_(True))
    return DataResponse(data=db.scalars(statement).all())

@category_router.get("/{category_id}", response_model=DataResponse[CategorySchema])
async def get_category(category_id: UUID, db: Session = Depends(get_db)):
    return DataResponse(data=get_or_404(db, Category, category_id, "Category"))

@category_router.post("", response_model=DataResponse[CategorySchema], status_code=201)
async def create_category(
    body: CategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    ensure_unique_slug(db, Category, body.slug, "Category")
    try:
        category = Category(**column_values(body))
        db.add(category)
        db.flush()
        record_audit(db, current_user, ActionType.CREATE, "category", category.id, {"name": category.name}, request)
        db.commit()
        db.refresh(category)
    except Exception:
        db.rollback()
        raise
    return DataResponse(data=category, message="Category created successfully")

@category_router.patch("/{category_id}", response_model=DataResponse[CategorySchema])
async def update_category(
    category_id: UUID,
    body: CategoryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    category = get_or_404(db, Category, category_id, "Category")
    if body.slug:
        ensure_unique_slug(db, Category, body.slug, "Category", exclude_id=category.id)
    try:
        changes = update_fields(category, body)
        record_audit(db, current_user, ActionType.UPDATE, "category", category.id, {"fields": sorted(changes)}, request)
        db.commit()
        db.refresh(category)
    except Exception:
        db.rollback()
        raise
    return DataResponse(data=category, message="Category updated successfully")

@category_router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    category = get_or_404(db, Category, category_id, "Category")
    try:
        record_audit(db, current_user, ActionType.DELETE, "category", category.id, {"name": category.name}, request)
        db.delete(category)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return MessageResponse(message="Category deleted successfully")

# Subcategories

@subcategory_router.get("", response_model=DataResponse[List[SubcategorySchema]])
async def get_subcategories(
    category_id: Optional[UUID] = Query(None, alias="categoryId"),
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: Session = Depends(get_db),
):
    statement = select(Subcategory).order_by(Subcategory.display_order, Subcategory.name)
    if category_id:
        statement = statement.where(Subcategory.category_id == category_id)
    if not include_inactive:
        statement = statement.where(Subcategory.is_active.is_(True))
    return DataResponse(data=db.scalars(statement).all())

@subcategory_router.get("/{subcategory_id}", response_model=DataResponse[SubcategorySchema])
async def get_subcategory(subcategory_id: UUID, db: Session = Depends(get_db)):
    return DataResponse(data=get_or_404(db, Subcategory, subcategory_id, "Subcategory"))

@subcategory_router.post("", response_model=DataResponse[SubcategorySchema], status_code=201)
async def create_subcategory(
    body: SubcategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    get_or_404(db, Category, body.category_id, "Category")
    ensure_unique_slug(db, Subcategory, body.slug, "Subcategory")
    try:
        subcategory = Subcategory(**column_values(body))
        db.add(subcategory)
        db.flush()
        record_audit(
            db, current_user, ActionType.CREATE, "subcategory", subcategory.id,
            {"name": subcategory.name, "categoryId": str(subcategory.category_id)}, request,
        )
        db.commit()
        db.refresh(subcategory)
    except Exception:
        db.rollback()
        raise
    return DataResponse(data=subcategory, message="Subcategory created successfully")

@subcategory_router.patch("/{subcategory_id}", response_model=DataResponse[SubcategorySchema])
async def update_subcategory(
    subcategory_id: UUID,
    body: SubcategoryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    subcategory = get_or_404(db, Subcategory, subcategory_id, "Subcategory")
    if body.category_id:
        get_or_404(db, Category, body.category_id, "Category")
    if body.slug:
        ensure_unique_slug(db, Subcategory, body.slug, "Subcategory", exclude_id=subcategory.id)
    try:
        changes = update_fields(subcategory, body)
        record_audit(
            db, current_user, ActionType.UPDATE, "subcategory", subcategory.id, {"fields": sorted(changes)}, request
        )
        db.commit()
        db.refresh(subcategory)
    except Exception:
        db.rollback()
        raise
    return DataResponse(data=subcategory, message="Subcategory updated successfully")

@subcategory_router.delete("/{subcategory_id}", response_model=MessageResponse)
async def delete_subcategory(
    subcategory_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    subcategory = get_or_404(db, Subcategory, subcategory_id, "Subcategory")
    try:
        record_audit(
            db, current_user, ActionType.DELETE, "subcategory", subcategory.id, {"name": subcategory.name}, request
        )
        db.delete(subcategory)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return MessageResponse(message="Subcategory deleted successfully")
