from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .audit import record_audit
from .auth import CurrentUser, require_editor
from .database import get_db
from .exceptions import ResourceNotFoundError
from .models import ActionType, Post, utcnow
from .schemas import DataResponse, Post as PostSchema, PostCreate, PostUpdate
from .utils import ensure_unique_slug, update_fields

post_router = APIRouter()

def find_post(db: Session, identifier: str) -> Post:
    """
    Look a post up by numeric id, or by slug for anything else.
    """
    if identifier.isdigit():
        post = db.get(Post, int(identifier))
    else:
        post = db.scalars(select(Post).where(Post.slug == identifier)).first()
    if post is None:
        raise ResourceNotFoundError("Post")
    return post

@post_router.get("", response_model=DataResponse[List[PostSchema]])
async def get_posts(public: bool = False, db: Session = Depends(get_db)):
    if public:
        statement = (
            select(Post)
            .where(Post.published.is_(True))
            .order_by(Post.published_at.desc())
        )
    else:
        statement = select(Post).order_by(Post.created_at.desc())
    return DataResponse(data=db.scalars(statement).all())

@post_router.get("/{identifier}", response_model=DataResponse[PostSchema])
async def get_post(identifier: str, db: Session = Depends(get_db)):
    return DataResponse(data=find_post(db, identifier))

@post_router.post("", response_model=DataResponse[PostSchema], status_code=201)
async def create_post(
    body: PostCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_editor),
):
    ensure_unique_slug(db, Post, body.slug, "Post")
    try:
        post = Post(
            title=body.title,
            slug=body.slug,
            content=body.content,
            cover_image=body.cover_image,
            seo_keywords=body.seo_keywords,
            published=bool(body.published),
            published_at=utcnow() if body.published else None,
        )
        db.add(post)
        db.flush()
        record_audit(db, current_user, ActionType.CREATE, "post", post.id, {"title": post.title}, request)
        db.commit()
        db.refresh(post)
    except Exception:
        db.rollback()
        raise
    return DataResponse(data=post, message="Post created successfully")

@post_router.put("/{identifier}", response_model=DataResponse[PostSchema])
async def update_post(
    identifier: str,
    body: PostUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_editor),
):
    post = find_post(db, identifier)
    if body.slug and body.slug != post.slug:
        ensure_unique_slug(db, Post, body.slug, "Post", exclude_id=post.id)

    try:
        changes = update_fields(post, body)
        # Every publish stamps a fresh publication time
        if changes.get("published") is True:
            post.published_at = utcnow()
        record_audit(db, current_user, ActionType.UPDATE, "post", post.id, {"fields": sorted(changes)}, request)
        db.commit()
        db.refresh(post)
    except Exception:
        db.rollback()
        raise
    return DataResponse(data=post, message="Post updated successfully")
