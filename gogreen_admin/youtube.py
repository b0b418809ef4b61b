"""
Homepage YouTube videos.

Every mutation asks the storefront to revalidate its `youtube-videos` cache
tag so the homepage picks the change up without a redeploy.
"""

from typing import List, Union
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .audit import record_audit
from .auth import CurrentUser, get_current_user, require_editor
from .database import get_db
from .exceptions import InvalidVideoUrl, ResourceNotFoundError
from .models import ActionType, YoutubeVideo, utcnow
from .schemas import (
    DataResponse, MessageResponse, VideoReorder, YoutubeVideo as YoutubeVideoSchema,
    YoutubeVideoCreate, YoutubeVideoUpdate,
)
from .utils import (
    column_values, extract_youtube_video_id, get_or_404, revalidate_frontend, update_fields, youtube_embed_url,
)

youtube_router = APIRouter()

REVALIDATION_TAG = "youtube-videos"

def with_embed(video: YoutubeVideo) -> YoutubeVideoSchema:
    video_id = extract_youtube_video_id(video.youtube_url)
    return YoutubeVideoSchema.model_validate(video).model_copy(
        update={"video_id": video_id, "embed_url": youtube_embed_url(video_id)}
    )

def require_video_id(url) -> str:
    video_id = extract_youtube_video_id(str(url))
    if not video_id:
        raise InvalidVideoUrl(str(url))
    return video_id

def check_video_change(payload: Union[YoutubeVideoCreate, YoutubeVideoUpdate]) -> None:
    if payload.youtube_url is not None:
        require_video_id(payload.youtube_url)

@youtube_router.get("", response_model=DataResponse[List[YoutubeVideoSchema]])
async def get_videos(db: Session = Depends(get_db)):
    videos = db.scalars(
        select(YoutubeVideo)
        .where(YoutubeVideo.is_active.is_(True))
        .order_by(YoutubeVideo.display_order)
    ).all()
    return DataResponse(data=[with_embed(v) for v in videos])

@youtube_router.get("/admin", response_model=DataResponse[List[YoutubeVideoSchema]])
async def get_all_videos(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    videos = db.scalars(select(YoutubeVideo).order_by(YoutubeVideo.display_order)).all()
    return DataResponse(data=[with_embed(v) for v in videos])

@youtube_router.post("", response_model=DataResponse[YoutubeVideoSchema], status_code=201)
async def create_video(
    body: YoutubeVideoCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_editor),
):
    require_video_id(body.youtube_url)
    try:
        video = YoutubeVideo(**column_values(body))
        db.add(video)
        db.flush()
        record_audit(
            db, current_user, ActionType.CREATE, "youtube_video", video.id, {"youtubeUrl": video.youtube_url}, request
        )
        db.commit()
        db.refresh(video)
    except Exception:
        db.rollback()
        raise

    await revalidate_frontend(REVALIDATION_TAG)
    return DataResponse(data=with_embed(video), message="YouTube video added successfully")

@youtube_router.patch("/{video_id}", response_model=DataResponse[YoutubeVideoSchema])
async def update_video(
    video_id: UUID,
    body: YoutubeVideoUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_editor),
):
    if body.youtube_url is not None:
        require_video_id(body.youtube_url)
    video = get_or_404(db, YoutubeVideo, video_id, "YouTube video")
    try:
        changes = update_fields(video, body)
        record_audit(
            db, current_user, ActionType.UPDATE, "youtube_video", video.id, {"updatedFields": sorted(changes)}, request
        )
        db.commit()
        db.refresh(video)
    except Exception:
        db.rollback()
        raise

    await revalidate_frontend(REVALIDATION_TAG)
    return DataResponse(data=with_embed(video), message="YouTube video updated successfully")

@youtube_router.delete("/{video_id}", response_model=MessageResponse)
async def delete_video(
    video_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_editor),
):
    video = get_or_404(db, YoutubeVideo, video_id, "YouTube video")
    try:
        record_audit(
            db, current_user, ActionType.DELETE, "youtube_video", video.id, {"youtubeUrl": video.youtube_url}, request
        )
        db.delete(video)
        db.commit()
    except Exception:
        db.rollback()
        raise

    await revalidate_frontend(REVALIDATION_TAG)
    return MessageResponse(message="YouTube video deleted successfully")

@youtube_router.post("/reorder", response_model=MessageResponse)
async def reorder_videos(
    body: VideoReorder,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_editor),
):
    try:
        for item in body.video_orders:
            video = db.get(YoutubeVideo, item.id)
            if video is None:
                raise ResourceNotFoundError("YouTube video", item.id)
            video.display_order = item.display_order
            video.updated_at = utcnow()
        db.commit()
    except Exception:
        db.rollback()
        raise

    await revalidate_frontend(REVALIDATION_TAG)
    return MessageResponse(message="Video order updated successfully")
