"""
Utility functions shared by the routers.

This module provides utility functions for:
- Slug uniqueness and lookup-or-404 against the database
- Applying partial updates from request models
- YouTube URL parsing
- Frontend cache revalidation
"""

import re
from typing import Any, Dict, Optional, Type

import aiohttp
from pydantic import AnyUrl, BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import get_settings
from .exceptions import ConflictError, ResourceNotFoundError
from .logging_config import app_logger, error_log
from .models import utcnow

YOUTUBE_ID_PATTERNS = [
    re.compile(r"(?:youtube\.com/watch\?(?:.*&)?v=|youtu\.be/|youtube\.com/embed/)([^&\n?#/]+)"),
    re.compile(r"youtube\.com/v/([^&\n?#/]+)"),
    re.compile(r"youtube\.com/shorts/([^&\n?#/]+)"),
]

def get_or_404(db: Session, model: Type, resource_id: Any, label: str):
    """
    Fetch a row by primary key or raise ResourceNotFoundError.
    """
    instance = db.get(model, resource_id)
    if instance is None:
        raise ResourceNotFoundError(label)
    return instance

def ensure_unique_slug(
    db: Session,
    model: Type,
    slug: str,
    label: str,
    exclude_id: Any = None
) -> None:
    """
    Raise ConflictError when another row of `model` already uses `slug`.

    Args:
        db (Session): Database session
        model (Type): Mapped class with a `slug` column
        slug (str): Candidate slug
        label (str): Human-readable resource name for the error message
        exclude_id (Any): Row being updated, which may keep its own slug

    Raises:
        ConflictError: If the slug is taken
    """
    existing = db.scalars(select(model).where(model.slug == slug)).first()
    if existing is not None and existing.id != exclude_id:
        raise ConflictError(f"{label} with this slug already exists")

def column_values(payload: BaseModel, exclude_unset: bool = False) -> Dict[str, Any]:
    """
    Dump a request model into keyword arguments for a mapped class.
    """
    data = payload.model_dump(exclude_unset=exclude_unset)
    # URL types are stored as plain text
    return {key: str(value) if isinstance(value, AnyUrl) else value for key, value in data.items()}

def update_fields(instance: Any, changes: BaseModel) -> Dict[str, Any]:
    """
    Copy the fields the client actually sent onto `instance`.

    Returns the applied changes keyed by attribute name.
    """
    data = column_values(changes, exclude_unset=True)
    for key, value in data.items():
        setattr(instance, key, value)
    if hasattr(instance, "updated_at"):
        instance.updated_at = utcnow()
    return data

def extract_youtube_video_id(url: str) -> Optional[str]:
    """
    Extract the video id from watch, short-link, embed, /v/ and shorts URLs.

    Returns:
        Optional[str]: The id, or None when the URL is not a YouTube video link
    """
    for pattern in YOUTUBE_ID_PATTERNS:
        match = pattern.search(url)
        if match and match.group(1):
            return match.group(1)
    return None

def youtube_embed_url(video_id: Optional[str]) -> str:
    return f"https://www.youtube.com/embed/{video_id}?rel=0&modestbranding=1"

async def revalidate_frontend(tag: str) -> bool:
    """
    Ask the storefront to drop its cached data for `tag`.

    Failures are logged and swallowed: a stale homepage must never fail the
    admin mutation that triggered it.

    Returns:
        bool: True when the frontend acknowledged the revalidation
    """
    settings = get_settings()
    url = f"{settings.FRONTEND_URL.rstrip('/')}/api/revalidate"
    try:
        timeout = aiohttp.ClientTimeout(total=settings.REVALIDATION_TIMEOUT)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(url, params={"tag": tag, "secret": settings.REVALIDATION_SECRET}) as response:
                if response.status >= 400:
                    app_logger.warning("revalidation_rejected", tag=tag, status=response.status)
                    return False
        app_logger.info("revalidated", tag=tag)
        return True
    except (aiohttp.ClientError, TimeoutError) as e:
        error_log(e, {"context": "frontend_revalidation", "tag": tag})
        return False
