# router/bookmark_routes.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, selectinload

from elibrary.auth import oauth2
from elibrary.database.connection import get_db
from elibrary.database.upsert import upsert
from elibrary.models.all_model import Bookmark, Resource, User as UserModel
from elibrary.router.resource_routes import get_resource_or_404, with_ratings
from elibrary.schemas.all_schema import BookmarkRequest, BookmarkResponse, MessageResponse

router = APIRouter(
    prefix="/api/bookmarks",
    tags=["Bookmarks"]
)


def _to_response(db: Session, bookmarks: List[Bookmark]) -> List[BookmarkResponse]:
    resources = with_ratings(db, [b.resource for b in bookmarks])
    return [
        BookmarkResponse.model_validate(b).model_copy(update={"resource": r})
        for b, r in zip(bookmarks, resources)
    ]


@router.get("", response_model=List[BookmarkResponse])
def list_bookmarks(
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(oauth2.get_current_user),
):
    bookmarks = (
        db.query(Bookmark)
        .options(
            selectinload(Bookmark.resource).selectinload(Resource.uploaded_by),
            selectinload(Bookmark.resource).selectinload(Resource.tag_rows),
        )
        .filter(Bookmark.user_id == current_user.id)
        .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
        .all()
    )
    return _to_response(db, bookmarks)


@router.post("", response_model=BookmarkResponse, status_code=status.HTTP_201_CREATED)
def add_bookmark(
    request: BookmarkRequest,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(oauth2.get_current_user),
):
    """Bookmark a resource; bookmarking it again is a no-op."""
    get_resource_or_404(db, request.resource_id)
    upsert(db, Bookmark, keys={"user_id": current_user.id, "resource_id": request.resource_id})
    db.commit()
    bookmark = (
        db.query(Bookmark)
        .filter(Bookmark.user_id == current_user.id, Bookmark.resource_id == request.resource_id)
        .one()
    )
    return _to_response(db, [bookmark])[0]


@router.delete("", response_model=MessageResponse)
def remove_bookmark(
    request: BookmarkRequest,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(oauth2.get_current_user),
):
    db.query(Bookmark).filter(
        Bookmark.user_id == current_user.id,
        Bookmark.resource_id == request.resource_id,
    ).delete(synchronize_session=False)
    db.commit()
    return {"message": "Removed"}
