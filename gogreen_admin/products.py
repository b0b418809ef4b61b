from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload, with_loader_criteria

from .audit import record_audit
from .auth import CurrentUser, require_admin
from .config import Settings, get_settings
from .database import get_db
from .exceptions import ResourceNotFoundError
from .logging_config import log_business_operation
from .models import ActionType, Product, ProductSpecification, utcnow
from .schemas import (
    DataResponse, MessageResponse, Product as ProductSchema, ProductCreate, ProductDetail,
    ProductUpdate, ToggleActive, ToggleFeatured,
)
from .search.clauses import MatchThresholds
from .search.engine import ProductSearchEngine
from .utils import column_values, ensure_unique_slug, get_or_404, update_fields

product_router = APIRouter()

def get_search_engine(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ProductSearchEngine:
    thresholds = MatchThresholds(
        trigram=settings.SEARCH_TRIGRAM_THRESHOLD,
        word_similarity=settings.SEARCH_WORD_SIMILARITY_THRESHOLD,
    )
    return ProductSearchEngine(db, thresholds=thresholds, text_config=settings.SEARCH_TEXT_CONFIG)

@product_router.get("", response_model=DataResponse[List[ProductSchema]])
async def get_products(
    search: Optional[str] = None,
    include_inactive: bool = Query(False, alias="includeInactive"),
    featured: bool = False,
    limit: Optional[int] = Query(None, ge=1),
    subcategory_id: Optional[UUID] = Query(None, alias="subcategoryId"),
    db: Session = Depends(get_db),
    engine: ProductSearchEngine = Depends(get_search_engine),
    settings: Settings = Depends(get_settings),
):
    # A blank search box is the same as no search at all
    if search and search.strip():
        return DataResponse(data=engine.search(search, include_inactive=include_inactive))

    statement = select(Product).order_by(Product.display_order, Product.created_at)
    # Featured products are always active ones
    if featured or not include_inactive:
        statement = statement.where(Product.is_active.is_(True))

    if featured:
        statement = statement.where(Product.is_featured.is_(True)).limit(
            limit or settings.FEATURED_PRODUCTS_LIMIT
        )
    elif subcategory_id:
        statement = statement.where(Product.subcategory_id == subcategory_id)

    return DataResponse(data=db.scalars(statement).all())

def load_product_detail(db: Session, *criteria) -> Product:
    """
    Load one product together with its active specification tables.

    Raises:
        ResourceNotFoundError: If no product matches
    """
    product = db.scalars(
        select(Product)
        .options(
            selectinload(Product.specification_tables),
            with_loader_criteria(ProductSpecification, ProductSpecification.is_active.is_(True)),
        )
        .where(*criteria)
        .execution_options(populate_existing=True)
    ).first()
    if not product:
        raise ResourceNotFoundError("Product")
    return product

@product_router.get("/slug/{slug}", response_model=DataResponse[ProductDetail])
async def get_product_by_slug(slug: str, db: Session = Depends(get_db)):
    return DataResponse(data=load_product_detail(db, Product.slug == slug))

@product_router.get("/{product_id}", response_model=DataResponse[ProductDetail])
async def get_product(product_id: UUID, db: Session = Depends(get_db)):
    return DataResponse(data=load_product_detail(db, Product.id == product_id))

@product_router.post("", response_model=DataResponse[ProductSchema], status_code=201)
async def create_product(
    body: ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    ensure_unique_slug(db, Product, body.slug, "Product")
    try:
        values = column_values(body)
        values["is_featured"] = bool(values.get("is_featured"))
        product = Product(**values)
        db.add(product)
        db.flush()
        record_audit(db, current_user, ActionType.CREATE, "product", product.id, {"name": product.name}, request)
        db.commit()
        db.refresh(product)
    except Exception:
        db.rollback()
        raise

    log_business_operation("product_created", product_id=product.id, slug=product.slug)
    return DataResponse(data=product, message="Product created successfully")

@product_router.patch("/{product_id}", response_model=DataResponse[ProductSchema])
async def update_product(
    product_id: UUID,
    body: ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    product = get_or_404(db, Product, product_id, "Product")
    if body.slug:
        ensure_unique_slug(db, Product, body.slug, "Product", exclude_id=product.id)

    try:
        changes = update_fields(product, body)
        record_audit(
            db, current_user, ActionType.UPDATE, "product", product.id,
            {"fields": sorted(changes)}, request,
        )
        db.commit()
        db.refresh(product)
    except Exception:
        db.rollback()
        raise

    return DataResponse(data=product, message="Product updated successfully")

@product_router.patch("/{product_id}/toggle", response_model=DataResponse[ProductSchema])
async def toggle_product(
    product_id: UUID,
    body: ToggleActive,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    product = get_or_404(db, Product, product_id, "Product")
    try:
        product.is_active = body.is_active
        product.updated_at = utcnow()
        record_audit(db, current_user, ActionType.UPDATE, "product", product.id, {"isActive": body.is_active}, request)
        db.commit()
        db.refresh(product)
    except Exception:
        db.rollback()
        raise

    state = "activated" if product.is_active else "deactivated"
    return DataResponse(data=product, message=f"Product {state} successfully")

@product_router.patch("/{product_id}/featured", response_model=DataResponse[ProductSchema])
async def feature_product(
    product_id: UUID,
    body: ToggleFeatured,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    product = get_or_404(db, Product, product_id, "Product")
    try:
        product.is_featured = body.is_featured
        product.updated_at = utcnow()
        record_audit(db, current_user, ActionType.UPDATE, "product", product.id, {"isFeatured": body.is_featured}, request)
        db.commit()
        db.refresh(product)
    except Exception:
        db.rollback()
        raise

    return DataResponse(data=product)

@product_router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    product = get_or_404(db, Product, product_id, "Product")
    try:
        record_audit(db, current_user, ActionType.DELETE, "product", product.id, {"name": product.name}, request)
        db.delete(product)
        db.commit()
    except Exception:
        db.rollback()
        raise

    log_business_operation("product_deleted", product_id=product_id)
    return MessageResponse(message="Product deleted successfully")
