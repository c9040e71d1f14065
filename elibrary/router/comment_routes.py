# router/comment_routes.py
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, selectinload

from elibrary.auth import oauth2
from elibrary.database.connection import get_db
from elibrary.models.all_model import Comment, User as UserModel
from elibrary.router.resource_routes import get_resource_or_404
from elibrary.schemas.all_schema import CommentCreate, CommentResponse

router = APIRouter(
    prefix="/api/comments",
    tags=["Comments"]
)


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def add_comment(
    request: CommentCreate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(oauth2.get_current_user),
):
    get_resource_or_404(db, request.resource_id)
    comment = Comment(
        resource_id=request.resource_id,
        user_id=current_user.id,
        comment=request.comment,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


@router.get("", response_model=List[CommentResponse])
def list_comments(
    resource_id: int = Query(..., alias="resourceId"),
    db: Session = Depends(get_db),
):
    """Comments on one resource, newest first."""
    return (
        db.query(Comment)
        .options(selectinload(Comment.user))
        .filter(Comment.resource_id == resource_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .all()
    )
