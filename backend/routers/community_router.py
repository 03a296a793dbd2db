"""
Community Router

Endpoints for:
- Public feed of community posts (author and comment count included)
- Posting, liking and commenting (authenticated)
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List

from config import COMMUNITY_PAGE_SIZE, COMMUNITY_MAX_PAGE_SIZE
from database import get_db, User
from auth import get_current_active_user
from models import (
    CommunityPostCreate, CommunityPostResponse, CommunityFeedPost,
    CommunityCommentCreate, CommunityCommentResponse, CommunityCommentWithAuthor
)
from storage import Storage
from structured_logging import get_logger

router = APIRouter(prefix="/api/community", tags=["Community"])
logger = get_logger("api.community")


# =============================================================================
# POSTS
# =============================================================================

@router.get("/posts", response_model=List[CommunityFeedPost])
def get_community_posts(
    limit: int = Query(COMMUNITY_PAGE_SIZE, ge=1, le=COMMUNITY_MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    """Public feed, newest first."""
    feed = []
    for post, comment_count in Storage(db).get_community_posts(limit=limit, offset=offset):
        item = CommunityFeedPost.model_validate(post)
        item.comment_count = comment_count
        feed.append(item)
    return feed


@router.post("/posts", response_model=CommunityPostResponse, status_code=201)
def create_community_post(
    post: CommunityPostCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    try:
        created = Storage(db).create_community_post(current_user.id, post.model_dump())
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to create post")

    logger.info(
        "Community post created",
        extra={"user_id": current_user.id, "post_id": created.id, "category": created.category}
    )
    return created


@router.post("/posts/{post_id}/like", response_model=CommunityPostResponse)
def like_community_post(
    post_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Increment the like counter. Repeated likes are all counted."""
    try:
        post = Storage(db).like_community_post(post_id)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to like post")

    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


# =============================================================================
# COMMENTS
# =============================================================================

@router.get("/posts/{post_id}/comments", response_model=List[CommunityCommentWithAuthor])
def get_post_comments(post_id: str, db: Session = Depends(get_db)):
    """Public comment thread, newest first."""
    storage = Storage(db)
    if not storage.get_community_post(post_id):
        raise HTTPException(status_code=404, detail="Post not found")
    return storage.get_post_comments(post_id)


@router.post("/posts/{post_id}/comments", response_model=CommunityCommentResponse, status_code=201)
def create_post_comment(
    post_id: str,
    comment: CommunityCommentCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    storage = Storage(db)
    if not storage.get_community_post(post_id):
        raise HTTPException(status_code=404, detail="Post not found")

    try:
        created = storage.create_community_comment(post_id, current_user.id, comment.model_dump())
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Failed to create comment")

    logger.info(
        "Community comment created",
        extra={"user_id": current_user.id, "post_id": post_id, "comment_id": created.id}
    )
    return created
